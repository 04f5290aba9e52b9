"""
Text layout for usage output: indent a block of text and wrap it to a width.

Lines are broken only at spaces or tabs; a word longer than the available
room stays whole on its own line. Explicit newlines in the input are kept.
The width counts the indent, so with the defaults every produced line is at
most 80 columns wide.
"""
import re
import textwrap


def wrap(text, /, width=80, indent="  "):
    """
    Indent every line of text with indent and word-wrap it at width columns.

    >>> wrap("one two three", width=8)
    '  one\\n  two\\n  three'
    """
    if not isinstance(text, str):
        raise TypeError("wrap() argument must be a string")
    if indent and 0 < width <= len(indent):
        raise ValueError("wrap() width must be greater than indent length")

    wrapper = textwrap.TextWrapper(
        width=width,
        initial_indent=indent,
        subsequent_indent=indent,
        expand_tabs=False,
        replace_whitespace=False,
        break_long_words=False,
        break_on_hyphens=False,
    )
    lines = []
    for line in text.split("\n"):
        # Blank lines keep the paragraph structure of the input.
        if not line.strip():
            lines.append("")
            continue
        lines.extend(wrapper.wrap(re.sub(r"[ \t]+$", "", line)))
    return "\n".join(lines)


__all__ = ("wrap",)
