"""Plain-text report building blocks."""

WIDTH = 68


def rule(char: str = "═", width: int = WIDTH) -> str:
    return char * width


def banner(title: str) -> str:
    inner = WIDTH - 2
    return "\n".join([
        "╔" + "═" * inner + "╗",
        "║" + title.center(inner) + "║",
        "╚" + "═" * inner + "╝",
    ])


def section(title: str) -> str:
    return "\n".join([rule(), title.center(WIDTH).rstrip(), rule(), ""])


def or_default(value, default: str = "N/A") -> str:
    if value is None or value == "" or value == [] or value == {}:
        return default
    return str(value)


def numbered(items, default: str = "None found") -> str:
    lines = [f"{i}. {item}" for i, item in enumerate(items, start=1)]
    return "\n".join(lines) if lines else default
