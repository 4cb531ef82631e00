import re
from typing import Iterable, List

from services.models import Step

MAX_STEPS = 15
MIN_CONTINUATION_CHARS = 10

NUMBERED_STEP_RE = re.compile(r"^(?:bước\s+)?(\d+)[.:)]\s*(.+)", re.IGNORECASE)


class StepParser:
    """Group step lines into numbered steps.

    Numbers are kept as printed: gaps and repeats in the source survive, since
    scanned books often restart numbering per page.
    """

    def __init__(self, max_steps: int = MAX_STEPS):
        self.max_steps = max_steps

    def parse(self, lines: Iterable[str]) -> List[Step]:
        steps: List[Step] = []
        open_number = 0
        open_text = ""

        for raw in lines:
            line = str(raw or "").strip()
            match = NUMBERED_STEP_RE.match(line)
            if match:
                if open_number > 0:
                    steps.append(Step(number=open_number, text=open_text.strip()))
                    open_number, open_text = 0, ""
                if len(steps) >= self.max_steps:
                    break
                open_number = int(match.group(1))
                open_text = match.group(2)
                continue

            if len(line) <= MIN_CONTINUATION_CHARS:
                continue
            if open_number > 0:
                open_text = f"{open_text} {line}"
            elif not steps:
                # Unnumbered method text: the first real sentence becomes step 1.
                open_number = 1
                open_text = line

        if open_number > 0 and len(steps) < self.max_steps:
            steps.append(Step(number=open_number, text=open_text.strip()))
        return steps


def parse_steps(lines: Iterable[str]) -> List[Step]:
    return StepParser().parse(lines)
