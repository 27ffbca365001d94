"""Built-in tool modules.

Each module exports DETAILS (description + JSON-schema parameters) and an
execute callable whose positional parameters follow the order of the
schema's properties.
"""
