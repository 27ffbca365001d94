DETAILS = {
    "description": "Count words, lines and characters in a piece of text.",
    "parameters": {
        "type": "object",
        "properties": {
            "text": {"type": "string", "description": "Text to measure"},
        },
        "required": ["text"],
    },
}


def execute(text: str) -> dict:
    text = str(text)
    return {
        "words": len(text.split()),
        "lines": len(text.splitlines()) if text else 0,
        "characters": len(text),
    }
