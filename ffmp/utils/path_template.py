"""
Output path derivation.

A pattern is plain text containing any of three placeholders, each replaced by a
part of the input path:

- `{{dir}}`: the input's directory ('.' when the input has none)
- `{{name}}`: the input's file name without extension
- `{{ext}}`: the input's extension including the leading dot

All placeholders are substituted in a single pass, so text inserted for one
placeholder is never expanded again. Anything else in the pattern, including
unknown `{{...}}` tokens, is kept as is.
"""
import os
import re

DIR_TOKEN = "{{dir}}"
NAME_TOKEN = "{{name}}"
EXT_TOKEN = "{{ext}}"

_TOKEN_RE = re.compile("|".join(re.escape(token) for token in (DIR_TOKEN, NAME_TOKEN, EXT_TOKEN)))


def split_input_path(input_path: str) -> tuple[str, str, str]:
    """
    Splits a path into (directory, stem, extension).

    The directory falls back to '.' so that derived outputs always carry a
    directory component.
    """
    directory, filename = os.path.split(input_path)
    stem, extension = os.path.splitext(filename)
    return directory or ".", stem, extension


def derive_output_path(input_path: str, pattern: str) -> str:
    """
    Substitutes the placeholders of `pattern` with the parts of `input_path`.

    If the substituted result has no directory component, the input's directory
    is prepended.

    Args:
        input_path: Source media file, absolute or relative.
        pattern: Output template, e.g. "{{dir}}/{{name}}_out{{ext}}".

    Returns:
        The output path as a string.

    Example:
        >>> derive_output_path("/a/b/clip.mp4", "{{dir}}/{{name}}_out{{ext}}")
        '/a/b/clip_out.mp4'
        >>> derive_output_path("in.mov", "out{{ext}}")
        './out.mov'
    """
    directory, stem, extension = split_input_path(input_path)
    parts = {DIR_TOKEN: directory, NAME_TOKEN: stem, EXT_TOKEN: extension}
    result = _TOKEN_RE.sub(lambda match: parts[match.group(0)], pattern)
    if not os.path.dirname(result):
        result = os.path.join(directory, result)
    return result


def derive_conversion_path(input_path: str, target_format: str) -> str:
    """Returns `<input dir>/<stem>.<target_format>`, ignoring any pattern."""
    directory, stem, _ = split_input_path(input_path)
    return os.path.join(directory, f"{stem}.{target_format.lstrip('.')}")
