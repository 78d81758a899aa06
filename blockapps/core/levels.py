from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Pattern, Union

import yaml

from blockapps.core.errors import LevelConfigError
from blockapps.core.interstitial import InterstitialContent, Quiz, QuizAnswer
from blockapps.core.progress import InterType
from blockapps.core.requirements import RequiredBlockSpec, parse_requirement

logger = logging.getLogger(__name__)

_INTERSTITIAL_FLAGS = {
    "none": InterType.NONE,
    "pre": InterType.PRE,
    "post": InterType.POST,
    "both": InterType.PRE | InterType.POST,
}


@dataclass(frozen=True)
class LevelConfig:
    number: int
    title: str
    templates: Dict[str, str]
    toolbox: List[str] = field(default_factory=list)
    solution: Optional[str] = None
    max_blocks: Optional[int] = None
    ideal_block_num: Optional[int] = None
    check_for_empty_blocks: bool = False
    free_blocks: Optional[Pattern[str]] = None
    required_blocks: List[RequiredBlockSpec] = field(default_factory=list)
    num_required_blocks_to_flag: Union[int, float] = 1
    interstitials: InterType = InterType.NONE
    interstitial: InterstitialContent = field(default_factory=InterstitialContent)
    skin_id: Optional[str] = None
    page: Optional[int] = None

    @property
    def key(self) -> str:
        return f"level{self.number}"


class LevelRepository:
    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = base_dir or Path(__file__).resolve().parent.parent / "data" / "levels"
        self._levels = self._load_levels()

    def get(self, number: int) -> LevelConfig:
        return self._levels[number]

    @property
    def max_level(self) -> int:
        return max(self._levels)

    def clamp(self, number: int) -> int:
        """Nearest level number that exists."""
        return min(max(min(self._levels), number), self.max_level)

    def _load_levels(self) -> Dict[int, LevelConfig]:
        base_dir = self._base_dir
        if not base_dir.exists():
            raise FileNotFoundError(f"Levels directory not found: {base_dir}")

        levels: Dict[int, LevelConfig] = {}
        for level_path in base_dir.glob("level*.yaml"):
            m = re.match(r"^level(\d+)$", level_path.stem)
            if not m:
                logger.warning("Ignoring level file with no number: %s", level_path.name)
                continue
            raw = yaml.safe_load(level_path.read_text(encoding="utf-8"))
            levels[int(m.group(1))] = parse_level(int(m.group(1)), raw, level_path.name)

        if not levels:
            raise LevelConfigError("No level files (level*.yaml) found in data/levels")
        return dict(sorted(levels.items()))


def parse_level(number: int, raw: Any, source: str = "<level>") -> LevelConfig:
    if not raw or not isinstance(raw, dict):
        raise LevelConfigError(f"{source}: expected YAML with 'title' and 'blocks'")
    title = raw.get("title")
    if not title or not isinstance(title, str):
        raise LevelConfigError(f"{source}: missing or invalid 'title'")
    templates = raw.get("blocks")
    if not templates or not isinstance(templates, dict):
        raise LevelConfigError(f"{source}: 'blocks' must map block types to code")
    templates = {str(k): str(v) for k, v in templates.items()}

    toolbox = [str(t) for t in raw.get("toolbox") or templates]
    unknown = [t for t in toolbox if t not in templates]
    if unknown:
        raise LevelConfigError(f"{source}: toolbox lists unknown blocks {unknown}")

    required = []
    for entry in raw.get("required_blocks") or []:
        spec = parse_requirement(entry)
        if spec is not None:
            required.append(spec)

    free_blocks = None
    if raw.get("free_blocks"):
        try:
            free_blocks = re.compile(str(raw["free_blocks"]))
        except re.error as e:
            logger.warning("%s: ignoring invalid free_blocks pattern: %s", source, e)

    flag_name = str(raw.get("interstitials", "none")).lower()
    if flag_name not in _INTERSTITIAL_FLAGS:
        raise LevelConfigError(f"{source}: 'interstitials' must be one of {sorted(_INTERSTITIAL_FLAGS)}")

    solution = raw.get("solution")
    return LevelConfig(
        number=number,
        title=title.strip(),
        templates=templates,
        toolbox=toolbox,
        solution=str(solution) if solution is not None else None,
        max_blocks=_optional_int(raw, "max_blocks", source),
        ideal_block_num=_optional_int(raw, "ideal_block_num", source),
        check_for_empty_blocks=bool(raw.get("check_for_empty_blocks", False)),
        free_blocks=free_blocks,
        required_blocks=required,
        num_required_blocks_to_flag=_flag_cap(raw.get("num_required_blocks_to_flag", 1), source),
        interstitials=_INTERSTITIAL_FLAGS[flag_name],
        interstitial=_parse_interstitial(raw.get("interstitial"), source),
        skin_id=str(raw["skin_id"]) if raw.get("skin_id") else None,
        page=_optional_int(raw, "page", source),
    )


def _optional_int(raw: Dict[str, Any], key: str, source: str) -> Optional[int]:
    value = raw.get(key)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise LevelConfigError(f"{source}: '{key}' must be a whole number, got {value!r}") from None


def _flag_cap(value: Any, source: str) -> Union[int, float]:
    if isinstance(value, str) and value.lower() in ("infinity", "inf", "all"):
        return math.inf
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        raise LevelConfigError(f"{source}: invalid num_required_blocks_to_flag {value!r}") from None


def _parse_interstitial(raw: Any, source: str) -> InterstitialContent:
    if not raw:
        return InterstitialContent()
    if not isinstance(raw, dict):
        raise LevelConfigError(f"{source}: 'interstitial' must be a mapping")
    quiz = None
    raw_quiz = raw.get("quiz")
    if raw_quiz:
        if not isinstance(raw_quiz, dict):
            raise LevelConfigError(f"{source}: 'interstitial.quiz' must be a mapping")
        raw_answers = raw_quiz.get("answers") or []
        if not isinstance(raw_answers, list):
            raise LevelConfigError(f"{source}: 'interstitial.quiz.answers' must be a list")
        answers = []
        for a in raw_answers:
            if not isinstance(a, dict):
                raise LevelConfigError(f"{source}: quiz answer {a!r} must be a mapping with 'id' and 'text'")
            answers.append(QuizAnswer(id=str(a.get("id", "")), text=str(a.get("text", ""))))
        quiz = Quiz(question=str(raw_quiz.get("question", "")), answers=answers)
    video = raw.get("video")
    return InterstitialContent(
        message=str(raw.get("message") or ""),
        quiz=quiz,
        video_id=str(video) if video else None,
    )
