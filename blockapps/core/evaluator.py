"""Classification of a learner's program against a level's pass criteria."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from blockapps.core.levels import LevelConfig
from blockapps.core.messages import MessageCatalog
from blockapps.core.outcomes import Outcome, presentation_for
from blockapps.core.progress import LevelProgress
from blockapps.core.requirements import BlockRequirement, CodeRequirement, RequiredBlockSpec
from blockapps.core.workspace import Block, Workspace, strip_code

logger = logging.getLogger(__name__)

_EMPTY_BODY_RE = re.compile(r"\{\s*\}")


@dataclass(frozen=True)
class FeedbackReport:
    """Everything the feedback dialog shows for one run."""

    outcome: Outcome
    stars: int
    hint: Optional[str]
    missing_blocks: List[RequiredBlockSpec] = field(default_factory=list)
    text_color: str = "red"
    show_hint_title: bool = True
    closing_message: Optional[str] = None
    show_continue: bool = False
    show_try_again: bool = False
    show_return_to_level: bool = True


class FeedbackEvaluator:
    """Runs the level's checks in priority order; the first failing check wins.

    1. empty block bodies (only if the level asks for it)
    2. missing required blocks
    3. level not completed (too few blocks, or just incomplete)
    4. more blocks than the ideal count
    5. pass
    """

    def __init__(self, config: LevelConfig) -> None:
        self._config = config

    def evaluate(self, workspace: Workspace, level_complete: Optional[bool]) -> Outcome:
        if self._config.check_for_empty_blocks and self.has_empty_top_level_blocks(workspace):
            return Outcome.EMPTY_BLOCK_FAIL
        if self.missing_required_blocks(workspace):
            return Outcome.MISSING_BLOCK_FAIL
        used = self.num_blocks_used(workspace)
        ideal = self._config.ideal_block_num
        if not level_complete:
            if ideal and used < ideal:
                return Outcome.TOO_FEW_BLOCKS_FAIL
            return Outcome.LEVEL_INCOMPLETE_FAIL
        if ideal and used > ideal:
            return Outcome.TOO_MANY_BLOCKS_FAIL
        return Outcome.ALL_PASS

    def has_empty_top_level_blocks(self, workspace: Workspace) -> bool:
        return bool(_EMPTY_BODY_RE.search(strip_code(workspace.to_code())))

    @staticmethod
    def user_blocks(workspace: Workspace) -> List[Block]:
        """Blocks the learner means to use: enabled and deletable."""
        return [b for b in workspace.all_blocks() if not b.disabled and b.deletable]

    def missing_required_blocks(self, workspace: Workspace) -> List[RequiredBlockSpec]:
        """Unmet requirements, in declaration order, at most the flag cap."""
        missing: List[RequiredBlockSpec] = []
        required = self._config.required_blocks
        if not required:
            return missing
        blocks = self.user_blocks(workspace)
        code: Optional[str] = None
        for spec in required:
            if len(missing) >= self._config.num_required_blocks_to_flag:
                break
            if isinstance(spec, CodeRequirement):
                if code is None:
                    code = workspace.to_code()
                if spec.text not in code:
                    missing.append(spec)
            elif isinstance(spec, BlockRequirement):
                if not any(self._safe_test(spec, block) for block in blocks):
                    missing.append(spec)
            else:
                logger.warning("Skipping unrecognised required block spec %r", spec)
        return missing

    def num_blocks_used(self, workspace: Workspace) -> int:
        blocks = self.user_blocks(workspace)
        free = self._config.free_blocks
        if free is None:
            return len(blocks)
        return sum(1 for block in blocks if not free.search(block.type))

    def build_feedback(
        self,
        outcome: Outcome,
        workspace: Workspace,
        progress: LevelProgress,
        messages: MessageCatalog,
    ) -> FeedbackReport:
        presentation = presentation_for(outcome)
        hint = None
        missing: List[RequiredBlockSpec] = []
        if outcome is Outcome.TOO_MANY_BLOCKS_FAIL:
            hint = messages.format(
                "numBlocksNeeded", self._config.ideal_block_num, self.num_blocks_used(workspace)
            )
        elif outcome is Outcome.MISSING_BLOCK_FAIL:
            missing = self.missing_required_blocks(workspace)
            if missing:
                hint = messages.get(presentation.message_key)
        elif presentation.message_key:
            hint = messages.get(presentation.message_key)

        passed = outcome is Outcome.ALL_PASS
        closing = None
        if passed:
            closing = messages.get("finalLevelMsg" if progress.is_final_level else "nextLevelMsg")
        return FeedbackReport(
            outcome=outcome,
            stars=presentation.stars,
            hint=hint,
            missing_blocks=missing,
            text_color="green" if passed else "red",
            show_hint_title=not passed,
            closing_message=closing,
            show_continue=presentation.show_continue,
            show_try_again=presentation.show_try_again,
            show_return_to_level=presentation.show_return_to_level,
        )

    @staticmethod
    def _safe_test(spec: BlockRequirement, block: Block) -> bool:
        try:
            return bool(spec.predicate(block))
        except Exception:
            logger.warning("Required block check %r failed on %s", spec.name, block.type, exc_info=True)
            return False
