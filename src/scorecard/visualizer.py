"""Azure DevOps wiki rendering of a scorecard run.

The main page is an HTML table (Azure wiki markdown accepts inline HTML) with a
row of check groups, a row of check names, and one row per service. Hovering a
service shows its full path; hovering a score shows the justifications behind it.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Sequence, Tuple

from .scoring import RunInfo, score_check

logger = logging.getLogger(__name__)

AUTOGENERATION_INFO = "<!-- !!! THIS FILE IS AUTOGENERATED - DO NOT EDIT IT MANUALLY !!! -->"
USAGE_GUIDE = "Hover over entries to show details like full service paths and score justifications."
SCORECARD_PAGE = "Scorecard.md"

HEADER_ELEMENT = "th"
COLUMN_ELEMENT = "td"
TITLE_NEWLINE = "&#013;"

# (content, colspan)
TableContent = Tuple[str, int]


def colorize_score(score: int) -> str:
    if score >= 90:
        color = "green"
    elif score >= 80:
        color = "yellow"
    elif score >= 70:
        color = "orange"
    else:
        color = "red"
    return f'<span style="color:{color}">{score}</span>'


def _attribute(value: str) -> str:
    return value.replace('"', "&quot;")


class AzureWikiTableVisualizer:
    """Writes the scorecard page and one documentation page per check."""

    def __init__(self, output_directory: Path) -> None:
        self._output_directory = Path(output_directory)
        self._row_index = 1

    def _row_style(self) -> str:
        self._row_index += 1
        if self._row_index % 2 == 0:
            return "background-color: rgba(0, 0, 0, 0.5);"
        return ""

    def _cell_style(self, element: str) -> str:
        style = ""
        # The two header rows stay pinned while scrolling.
        if self._row_index <= 3:
            style += "background-color: rgba(var(--palette-neutral-2),1);"
        if element == HEADER_ELEMENT:
            style += "position: sticky; top: -2px;"
        if self._row_index == 2:
            style += "top: 2.6em;"
        return f'style="{style}"'

    def _row(self, element: str, cells: Iterable[TableContent]) -> str:
        row_style = self._row_style()
        rendered = "".join(
            f'<{element} {self._cell_style(element)} colspan="{colspan}">{content}</{element}>'
            for content, colspan in cells
        )
        return f'<tr style="{row_style}">{rendered}</tr>'

    def to_markdown(self, run_info: RunInfo, now: Optional[datetime] = None) -> str:
        """Render the scorecard page for ``run_info``."""
        generated_at = now or datetime.now()
        self._row_index = 1

        check_names = run_info.check_names
        group_cells: List[TableContent] = [("   ", 1)]
        group_cells.extend((group, len(infos)) for group, infos in run_info.checks.items() if infos)
        group_cells.append(("   ", 1))

        header_cells: List[TableContent] = [("ServiceName", 1)]
        header_cells.extend((name, 1) for name in check_names)
        header_cells.append(("Average", 1))

        rows = [self._row(HEADER_ELEMENT, group_cells), self._row(HEADER_ELEMENT, header_cells)]
        for service_path, scorecard in run_info.service_scores.items():
            service_name = PurePosixPath(service_path).stem or service_path
            cells: List[TableContent] = [(f'<span title="{_attribute(service_path)}">{service_name}</span>', 1)]
            for name in check_names:
                deductions = scorecard.deductions_by_check.get(name, ())
                justification = TITLE_NEWLINE.join(
                    f"-{deduction.weight}: {deduction.message}" for deduction in deductions
                )
                cells.append(
                    (f'<span title="{_attribute(justification)}">{colorize_score(score_check(deductions))}</span>', 1)
                )
            cells.append((colorize_score(scorecard.average), 1))
            rows.append(self._row(COLUMN_ELEMENT, cells))

        table = "\n".join([""] + rows)
        run_info_json = json.dumps(run_info.to_dict(), sort_keys=False)
        generation_info = f"Scorecard generated at: {generated_at:%Y-%m-%d %H:%M:%S}"

        logger.info("Generated scorecard at %s", generated_at)

        return (
            f"{AUTOGENERATION_INFO}\n{AUTOGENERATION_INFO}\n{AUTOGENERATION_INFO}\n\n"
            f"{USAGE_GUIDE}\n\n"
            f'<table style="height: 40vh">{table}</table>\n\n'
            f"{generation_info}\n\n"
            f"<!-- {run_info_json} -->"
        )

    def visualize(self, run_info: RunInfo, now: Optional[datetime] = None) -> Sequence[Path]:
        """Write the scorecard page and check pages; return the written paths."""
        self._output_directory.mkdir(parents=True, exist_ok=True)
        written: List[Path] = []

        scorecard_path = self._output_directory / SCORECARD_PAGE
        scorecard_path.write_text(self.to_markdown(run_info, now=now), encoding="utf-8")
        written.append(scorecard_path)

        for infos in run_info.checks.values():
            for info in infos:
                page_path = self._output_directory / f"{info.name}.md"
                page_path.write_text(f"{AUTOGENERATION_INFO}\n\n{info.description}\n", encoding="utf-8")
                written.append(page_path)

        return written
