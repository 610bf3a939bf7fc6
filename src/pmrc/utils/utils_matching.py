# src/pmrc/utils/utils_matching.py


from collections.abc import Callable, Iterable
from fnmatch import fnmatchcase


def create_matcher(patterns: str | Iterable[str]) -> Callable[[str], bool]:
    """Build a predicate from glob patterns.

    Patterns are evaluated in order; a leading ``!`` negates a pattern and
    un-matches anything an earlier pattern matched. When every pattern is
    negated, values start out matched. ``*`` also crosses ``/``.
    """
    if isinstance(patterns, str):
        patterns = [patterns]
    compiled = [(p.startswith("!"), p.removeprefix("!")) for p in patterns if p]
    starts_matched = bool(compiled) and all(neg for neg, _ in compiled)

    def _match(value: str) -> bool:
        matched = starts_matched
        for negated, pattern in compiled:
            if fnmatchcase(value, pattern):
                matched = not negated
        return matched

    return _match
