"""
Structural change counting.

A module's structure is the list of its functions, methods and classes as
reported by radon's block visitor, plus one '<module>' block holding every
line outside them (imports, constants, top-level statements).
Two states of a file are compared block by block and every difference is tallied under '<kind>_<operation>', e.g.
'method_insert' or 'class_update'.
"""

from collections import Counter
from dataclasses import dataclass
from difflib import SequenceMatcher

from radon.complexity import cc_visit

from .errors import ExtractionError
from .models import Version

BLOCK_KINDS = {'F': 'function', 'M': 'method', 'C': 'class'}
MODULE_BLOCK = '<module>'
OPERATIONS = ('insert', 'delete', 'update', 'move')


@dataclass(frozen=True)
class StructureEntity:
    """A single function, method, class or the module-level code of a file"""
    name: str
    kind: str
    body: tuple[str, ...]


def _block_lines(lines: list[str], start: int, end: int, skip: set[int] = frozenset()) -> tuple[str, ...]:
    return tuple(
        lines[n - 1].strip()
        for n in range(start, end + 1)
        if n not in skip and n - 1 < len(lines) and lines[n - 1].strip()
    )


def extract_structure(code: str | None) -> dict[str, StructureEntity]:
    """Map block names to blocks, in source order"""
    if not code:
        return {}
    try:
        blocks = cc_visit(code)
    except (SyntaxError, ValueError) as e:
        raise ExtractionError("Cannot parse source", {'reason': e.__class__.__name__}) from e

    lines = code.splitlines()
    structure = {}

    # Imports, constants and top-level statements
    covered = {n for b in blocks for n in range(b.lineno, b.endline + 1)}
    module_body = _block_lines(lines, 1, len(lines), covered)
    if module_body:
        structure[MODULE_BLOCK] = StructureEntity(MODULE_BLOCK, 'module', module_body)

    for block in sorted(blocks, key=lambda b: (b.lineno, b.col_offset)):
        if block.letter == 'C':
            # Methods are blocks of their own
            skip = {n for m in block.methods for n in range(m.lineno, m.endline + 1)}
        else:
            skip = set()
        body = _block_lines(lines, block.lineno, block.endline, skip)

        name = block.fullname
        n = 1
        while name in structure:
            n += 1
            name = f"{block.fullname}#{n}"
        structure[name] = StructureEntity(name, BLOCK_KINDS[block.letter], body)
    return structure


def diff_structure(before: dict[str, StructureEntity], after: dict[str, StructureEntity]) -> Counter:
    """Tally the block-level changes turning `before` into `after`"""
    tally = Counter()
    for name in before.keys() - after.keys():
        tally[f"{before[name].kind}_delete"] += 1
    for name in after.keys() - before.keys():
        tally[f"{after[name].kind}_insert"] += 1

    common_before = [name for name in before if name in after]
    common_after = [name for name in after if name in before]
    in_order = set()
    matcher = SequenceMatcher(None, common_before, common_after, autojunk=False)
    for block in matcher.get_matching_blocks():
        in_order.update(common_before[block.a:block.a + block.size])

    for name in common_after:
        entity = after[name]
        if before[name].body != entity.body:
            tally[f"{entity.kind}_update"] += 1
        elif name not in in_order:
            tally[f"{entity.kind}_move"] += 1
    return tally


def diff_sources(before: str | None, after: str | None) -> Counter:
    """Structural changes between two states of a file (None = absent)"""
    return diff_structure(extract_structure(before), extract_structure(after))


def version_changes(version: Version) -> Counter:
    """Default diff collaborator: the tally recorded on the version at extraction"""
    return Counter(version.changes)


class ChangeCounter:
    """Running tally of structural changes, grouped by change kind"""

    def __init__(self, differ=version_changes):
        self.differ = differ
        self.counts = Counter()

    def reset(self) -> 'ChangeCounter':
        self.counts.clear()
        return self

    def count_changes(self, version: Version) -> 'ChangeCounter':
        """Add the changes `version` introduced relative to its predecessor"""
        for kind, count in self.differ(version).items():
            if count < 0:
                raise ExtractionError("Negative change count", {'kind': kind, 'commit': version.commit_hash})
            self.counts[kind] += count
        return self

    def add(self, other: 'ChangeCounter') -> 'ChangeCounter':
        for kind, count in other.counts.items():
            self.counts[kind] += count
        return self

    def get_total_sum(self) -> int:
        return sum(self.counts.values())

    def __repr__(self) -> str:
        return f"ChangeCounter({dict(self.counts)})"
