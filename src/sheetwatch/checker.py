"""SheetChecker - compares the source spreadsheet against its mirror.

For every selected sheet of the source spreadsheet:

1. Read the sheet from the source and from the mirror (creating the sheet
   in the mirror if it does not exist yet).
2. Diff the tracked regions and notify the changes.
3. Replace the mirror sheet's contents with the source grid.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from loguru import logger

from sheetwatch.diff import ChangeRecord, SkippedRegion, diff_region, resolve_regions
from sheetwatch.exceptions import NotificationError, SheetwatchError
from sheetwatch.transport import Grid, NotFoundError, SheetNotFoundError, Transport

if TYPE_CHECKING:
    from sheetwatch.config import WatchConfig


class Notifier(Protocol):
    async def send_changes(
        self, sheet_name: str, changes: Sequence[ChangeRecord]
    ) -> None: ...


@dataclass
class SheetResult:
    """Outcome of processing one sheet."""

    sheet_name: str
    changes: list[ChangeRecord] = field(default_factory=list)
    skipped_regions: list[SkippedRegion] = field(default_factory=list)
    created: bool = False  # sheet was missing from the mirror
    notified: bool = False


@dataclass
class RunSummary:
    """Outcome of one run over all sheets."""

    results: list[SheetResult] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def processed(self) -> list[str]:
        return [result.sheet_name for result in self.results]

    @property
    def change_count(self) -> int:
        return sum(len(result.changes) for result in self.results)


class SheetChecker:
    """Runs the compare-notify-sync pass over a spreadsheet.

    Example:
        >>> transport = GoogleSheetsTransport(access_token="ya29...")
        >>> checker = SheetChecker(config, transport, ChangeNotifier(config.notify_url))
        >>> summary = await checker.run()
    """

    def __init__(
        self, config: WatchConfig, transport: Transport, notifier: Notifier
    ) -> None:
        self._config = config
        self._transport = transport
        self._notifier = notifier

    async def run(self) -> RunSummary:
        """Process every selected sheet of the source spreadsheet.

        A failure on one sheet is logged and the run continues with the
        next one. Failures are not retried.
        """
        logger.info("Starting sheet check")
        source_id = self._config.spreadsheet_ids.source
        summary = RunSummary()

        sheet_names = await self._transport.get_sheet_names(source_id)
        for index, sheet_name in enumerate(sheet_names):
            if not self._config.sheet_filter.allows(sheet_name, index):
                logger.info(f"Skipping sheet: {sheet_name}")
                summary.skipped.append(sheet_name)
                continue

            logger.info(f"Processing sheet: {sheet_name}")
            try:
                result = await self.process_sheet(sheet_name)
            except SheetwatchError as e:
                logger.error(f"Error processing sheet {sheet_name}: {e}")
                summary.failed.append(sheet_name)
                continue
            summary.results.append(result)

        logger.info(
            f"Sheet check completed: {len(summary.results)} processed, "
            f"{len(summary.skipped)} skipped, {len(summary.failed)} failed, "
            f"{summary.change_count} change(s)"
        )
        return summary

    async def process_sheet(self, sheet_name: str) -> SheetResult:
        """Compare, notify and sync a single sheet."""
        source_id = self._config.spreadsheet_ids.source
        mirror_id = self._config.spreadsheet_ids.mirror
        result = SheetResult(sheet_name=sheet_name)

        current = await self._transport.get_values(source_id, sheet_name)

        try:
            previous = await self._transport.get_values(mirror_id, sheet_name)
        except (SheetNotFoundError, NotFoundError):
            logger.info(f"Sheet {sheet_name} not found in mirror spreadsheet, creating it")
            await self._transport.add_sheet(
                mirror_id,
                sheet_name,
                right_to_left=self._config.sheet_filter.right_to_left,
            )
            result.created = True
            previous = await self._transport.get_values(mirror_id, sheet_name)

        resolution = resolve_regions(sheet_name, self._config.regions)
        result.skipped_regions = resolution.skipped
        for region in resolution.regions:
            result.changes.extend(diff_region(current, previous, sheet_name, region))

        if result.changes:
            result.notified = await self._handle_changes(sheet_name, result.changes)
        else:
            logger.info(f"No changes detected in sheet: {sheet_name}")

        await self._sync_sheet(mirror_id, sheet_name, current)
        return result

    async def _handle_changes(
        self, sheet_name: str, changes: list[ChangeRecord]
    ) -> bool:
        """Notify changes; delivery failure is logged, not raised."""
        logger.info(f"Found {len(changes)} change(s) in sheet: {sheet_name}")

        try:
            await self._notifier.send_changes(sheet_name, changes)
        except NotificationError as e:
            logger.warning(f"Error handling changes: {e}")
            return False

        logger.info("Changes sent successfully")
        for change in changes:
            logger.debug(
                f"Change - title: {change.title}, time: {change.time}, "
                f"value: {change.value}, old value: {change.old_value}"
            )
        return True

    async def _sync_sheet(self, mirror_id: str, sheet_name: str, current: Grid) -> None:
        """Replace the mirror sheet's contents with the source grid."""
        await self._transport.clear_values(mirror_id, sheet_name)
        await self._transport.update_values(mirror_id, sheet_name, current)
        logger.info(f"Successfully synchronized sheet: {sheet_name}")
