"""Block Kit rendering of command replies."""

from tapbot.faucet.router import CommandResult

# Slack rejects section text above this length
MAX_SECTION_TEXT = 3000


def _sections(text: str) -> list[dict]:
    """Split text into mrkdwn sections on line boundaries."""
    chunks: list[str] = []
    current = ""
    for line in text.splitlines(keepends=True):
        if current and len(current) + len(line) > MAX_SECTION_TEXT:
            chunks.append(current)
            current = ""
        current += line[:MAX_SECTION_TEXT]
    if current:
        chunks.append(current)
    return [{"type": "section", "text": {"type": "mrkdwn", "text": chunk}} for chunk in chunks]


def format_reply(result: CommandResult) -> dict:
    """Format a command result as a Slack message.

    The reply text is posted unchanged for successes and failures alike;
    transfer replies already carry their own sent or rejected marker.

    Parameters
    ----------
    result : CommandResult
        Reply from the command router.

    Returns
    -------
    dict
        Slack message with Block Kit blocks and a plain text fallback.
    """
    return {"text": result.text, "blocks": _sections(result.text)}


def format_error(message: str) -> dict:
    """Generic failure reply for errors no command handler reported."""
    return {
        "text": f":x: {message}",
        "blocks": [{"type": "section", "text": {"type": "mrkdwn", "text": f":x: {message}"}}],
    }
