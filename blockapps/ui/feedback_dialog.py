"""Help dialog content: level feedback, stars and interstitial panel."""

from __future__ import annotations

from typing import List, Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QPlainTextEdit,
    QPushButton,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

from blockapps.core.requirements import RequiredBlockSpec
from blockapps.core.session import FeedbackSession
from blockapps.ui.colors import Palette, blend_hex


def _secondary_button_style() -> str:
    return f"""
        QPushButton {{
            background: #fafafa;
            color: {Palette.TEXT_PRIMARY};
            padding: 10px 16px;
            border: 1px solid #e0e0e0;
            border-radius: 12px;
            font-weight: 600;
            font-size: 13px;
        }}
        QPushButton:hover {{
            background: #f0f0f0;
            border-color: {Palette.PRIMARY};
            color: {Palette.PRIMARY};
        }}
    """


def _primary_button_style() -> str:
    return f"""
        QPushButton {{
            background: qlineargradient(x1:0, y1:0, x2:1, y2:1,
                stop:0 {Palette.PRIMARY_LIGHT}, stop:1 {Palette.PRIMARY});
            color: white;
            padding: 10px 16px;
            border: none;
            border-radius: 12px;
            font-weight: 600;
            font-size: 13px;
        }}
        QPushButton:hover {{ background: {Palette.PRIMARY}; }}
        QPushButton:disabled {{ background: #b0bec5; }}
    """


def stars_markup(stars: int, total: int = 3) -> str:
    empty = blend_hex(Palette.STAR, "#FFFFFF", Palette.STAR_EMPTY_MIX)
    filled = f'<span style="color:{Palette.STAR}">{"★" * stars}</span>'
    rest = f'<span style="color:{empty}">{"★" * (total - stars)}</span>'
    return filled + rest


def missing_blocks_text(specs: List[RequiredBlockSpec]) -> str:
    lines = []
    for spec in specs:
        params = ", ".join(f"{k}={v}" for k, v in spec.params.items())
        lines.append(f"• {spec.name}" + (f" ({params})" if params else ""))
    return "\n".join(lines)


class HelpPanel(QWidget):
    """Content of the help dialog, rebuilt from the session on every change."""

    def __init__(self, session: FeedbackSession, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._session = session
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(12)

        self._title = QLabel(session.config.title)
        self._title.setStyleSheet(f"color: {Palette.PRIMARY}; font-size: 18px; font-weight: 800;")
        layout.addWidget(self._title)

        self._stars = QLabel()
        self._stars.setTextFormat(Qt.TextFormat.RichText)
        self._stars.setStyleSheet("font-size: 28px;")
        self._stars.setAlignment(Qt.AlignCenter)
        layout.addWidget(self._stars)

        self._hint_title = QLabel(session.messages.get("hintTitle"))
        self._hint_title.setStyleSheet(f"color: {Palette.TEXT_SECONDARY}; font-weight: 700;")
        layout.addWidget(self._hint_title)

        self._feedback_text = QLabel()
        self._feedback_text.setWordWrap(True)
        layout.addWidget(self._feedback_text)

        self._missing = QLabel()
        self._missing.setStyleSheet(f"color: {Palette.TEXT_PRIMARY}; font-family: monospace;")
        layout.addWidget(self._missing)

        self._interstitial = self._build_interstitial()
        layout.addWidget(self._interstitial)

        btn_row = QHBoxLayout()
        btn_row.setSpacing(10)
        self._try_again = QPushButton(session.messages.get("tryAgain"))
        self._try_again.setStyleSheet(_secondary_button_style())
        self._try_again.clicked.connect(session.try_again)
        self._return = QPushButton(session.messages.get("returnToLevel"))
        self._return.setStyleSheet(_secondary_button_style())
        self._return.clicked.connect(session.return_to_level)
        self._continue = QPushButton(session.messages.get("continue"))
        self._continue.setStyleSheet(_primary_button_style())
        self._continue.clicked.connect(session.advance)
        for button in (self._try_again, self._return, self._continue):
            button.setCursor(Qt.CursorShape.PointingHandCursor)
            button.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)
            btn_row.addWidget(button, 1)
        layout.addLayout(btn_row)

        session.overlay.add_listener(self.refresh)
        session.interstitial.add_listener(self.refresh)
        self.refresh()

    def _build_interstitial(self) -> QFrame:
        content = self._session.interstitial.content
        frame = QFrame()
        frame.setObjectName("interstitial")
        frame.setStyleSheet(
            f"QFrame#interstitial {{ background: #eef4fb; border-radius: 12px; border: 1px solid {Palette.BORDER}; }}"
        )
        inner = QVBoxLayout(frame)
        inner.setContentsMargins(16, 12, 16, 12)
        inner.setSpacing(8)

        message = QLabel(content.message)
        message.setWordWrap(True)
        inner.addWidget(message)

        self._quiz_feedback = QLabel()
        self._quiz_feedback.setWordWrap(True)
        if content.quiz is not None:
            question = QLabel(content.quiz.question)
            question.setWordWrap(True)
            question.setStyleSheet("font-weight: 700;")
            inner.addWidget(question)
            for answer in content.quiz.answers:
                button = QPushButton(answer.text)
                button.setStyleSheet(_secondary_button_style())
                button.clicked.connect(lambda checked=False, _id=answer.id: self._session.answer_quiz(_id))
                inner.addWidget(button)
        inner.addWidget(self._quiz_feedback)

        url = self._session.interstitial.video_url
        if url:
            video = QLabel(f'<a href="{url}">{self._session.messages.get("watchVideo")}</a>')
            video.setTextFormat(Qt.TextFormat.RichText)
            video.setOpenExternalLinks(True)
            inner.addWidget(video)
        return frame

    def refresh(self) -> None:
        session = self._session
        feedback = session.feedback
        if feedback is None:
            self._stars.hide()
            self._hint_title.hide()
            self._feedback_text.hide()
            self._missing.hide()
        else:
            self._stars.setText(stars_markup(feedback.stars))
            self._stars.setVisible(feedback.stars > 0)
            self._hint_title.setVisible(feedback.show_hint_title)
            text = "\n".join(t for t in (feedback.hint, feedback.closing_message) if t)
            self._feedback_text.setText(text)
            self._feedback_text.setStyleSheet(
                f"color: {Palette.for_feedback(feedback.text_color)}; font-size: 14px; font-weight: 500;"
            )
            self._feedback_text.setAlignment(Qt.AlignCenter if feedback.text_color == "green" else Qt.AlignLeft)
            self._feedback_text.setVisible(bool(text))
            self._missing.setText(missing_blocks_text(feedback.missing_blocks))
            self._missing.setVisible(bool(feedback.missing_blocks))

        interstitial = session.interstitial
        self._interstitial.setVisible(interstitial.is_visible)
        quiz_feedback = interstitial.quiz_feedback
        if quiz_feedback is None:
            self._quiz_feedback.hide()
        else:
            self._quiz_feedback.setText(quiz_feedback.text)
            self._quiz_feedback.setStyleSheet(f"color: {Palette.for_feedback(quiz_feedback.color)};")
            self._quiz_feedback.show()

        buttons = session.buttons()
        self._continue.setVisible(buttons.continue_visible)
        self._continue.setEnabled(buttons.continue_enabled)
        self._try_again.setVisible(buttons.try_again_visible)
        self._return.setVisible(buttons.return_visible)


class CodePanel(QWidget):
    """Read-only view of the generated program."""

    def __init__(self, title: str, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        heading = QLabel(title)
        heading.setStyleSheet(f"color: {Palette.PRIMARY}; font-size: 16px; font-weight: 800;")
        layout.addWidget(heading)
        self._code = QPlainTextEdit()
        self._code.setReadOnly(True)
        self._code.setStyleSheet("font-family: monospace; font-size: 13px;")
        layout.addWidget(self._code)

    def set_code(self, code: str) -> None:
        self._code.setPlainText(code)
