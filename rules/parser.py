"""
Command argument parsing for management commands.

Arguments are double-quoted:

    /addmessage "good (morning|night)" "Hello!"

A quote preceded by a backslash does not end an argument. The backslash
is kept in the extracted text, so ``"say \\"hi\\""`` yields ``say \\"hi\\"``.
"""

from typing import List

from core.exceptions import CommandSyntaxError


QUOTE = '"'
ESCAPE = "\\"


def find_unescaped_quote(text: str, start: int) -> int:
    """
    Find the next double quote at or after ``start`` that is not
    directly preceded by a backslash.

    Returns:
        Index of the quote, or -1
    """
    index = text.find(QUOTE, start)
    while index > 0 and text[index - 1] == ESCAPE:
        index = text.find(QUOTE, index + 1)
    return index


def parse_quoted_args(text: str, count: int) -> List[str]:
    """
    Extract ``count`` quoted arguments from a command.

    Args:
        text: Raw command text
        count: Number of arguments expected

    Returns:
        The arguments, in order

    Raises:
        CommandSyntaxError: If any opening or closing quote is missing
    """
    args: List[str] = []
    cursor = 0

    for position in range(1, count + 1):
        opening = find_unescaped_quote(text, cursor)
        if opening == -1:
            raise CommandSyntaxError(f"Missing opening quote for argument {position}")

        closing = find_unescaped_quote(text, opening + 1)
        if closing == -1:
            raise CommandSyntaxError(f"Missing closing quote for argument {position}")

        args.append(text[opening + 1:closing])
        cursor = closing + 1

    return args
