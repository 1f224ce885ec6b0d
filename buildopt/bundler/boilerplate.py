"""Removal of helper scaffolding emitted by down-level TypeScript compilation."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence

_LINE_BREAK = re.compile(r"\r\n|\n|\r")


@dataclass(frozen=True)
class Boilerplate:
    start: Pattern[str]
    end: Pattern[str]


BOILERPLATE: Sequence[Boilerplate] = (
    Boilerplate(re.compile(r"^var __extends"), re.compile(r"^}\)\(\);$")),
    Boilerplate(re.compile(r"^var __assign"), re.compile(r"^};$")),
    Boilerplate(re.compile(r"^var __decorate"), re.compile(r"^};$")),
    Boilerplate(re.compile(r"^var __metadata"), re.compile(r"^};$")),
    Boilerplate(re.compile(r"^var __param"), re.compile(r"^};$")),
    Boilerplate(re.compile(r"^var __awaiter"), re.compile(r"^};$")),
    Boilerplate(re.compile(r"^var __generator"), re.compile(r"^};$")),
    Boilerplate(re.compile(r"^var __createBinding"), re.compile(r"^}\)\);$")),
    Boilerplate(re.compile(r"^var __setModuleDefault"), re.compile(r"^}\);$")),
    Boilerplate(re.compile(r"^var __importStar"), re.compile(r"^};$")),
)


def remove_all_ts_boilerplate(source: str) -> str:
    """Blank out every known helper block, keeping line numbers intact.

    The shim prepended to each bundle already provides these helpers, so all
    occurrences are treated as duplicates. Line endings are normalised to
    ``\\n``; running the function on its own output returns it unchanged.
    """
    return remove_duplicate_ts_boilerplate(source, [True] * len(BOILERPLATE))


def remove_duplicate_ts_boilerplate(source: str, seen: Optional[List[bool]] = None) -> str:
    """Keep the first occurrence of each helper and blank out the rest."""
    seen = list(seen) if seen is not None else [False] * len(BOILERPLATE)
    new_lines: List[str] = []
    removing = False
    end_pattern: Optional[Pattern[str]] = None

    for line in _LINE_BREAK.split(source):
        if removing:
            new_lines.append("")
            if end_pattern is not None and end_pattern.search(line):
                removing = False
            continue

        for index, boilerplate in enumerate(BOILERPLATE):
            if boilerplate.start.search(line):
                if seen[index]:
                    removing = True
                    end_pattern = boilerplate.end
                else:
                    seen[index] = True

        new_lines.append("" if removing else line)

    return "\n".join(new_lines)


__all__ = ["BOILERPLATE", "remove_all_ts_boilerplate", "remove_duplicate_ts_boilerplate"]
