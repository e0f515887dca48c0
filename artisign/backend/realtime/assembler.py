from typing import Optional

from artisign.backend.realtime.errors import InvalidInput
from artisign.backend.realtime.notifier import Notifier
from artisign.backend.realtime.session import SignSession

CORRECTION_KINDS = ("letter", "word", "clearWord", "clearText")


def validate_correction(kind: str, value: Optional[str] = None):
    if kind not in CORRECTION_KINDS:
        raise InvalidInput(f"Unknown correction type '{kind}', expected one of {list(CORRECTION_KINDS)}")
    if kind in ("letter", "word") and not value:
        raise InvalidInput(f"Correction type '{kind}' requires a correction value")


class TextAssembler:
    """Turns classifier output and manual corrections into session text."""

    def __init__(self, notifier: Notifier):
        self.notifier = notifier

    def append_letter(self, session: SignSession, letter: str) -> bool:
        # a held pose is classified on every stable frame
        if letter == session.last_letter:
            return False

        session.last_letter = letter
        session.current_word += letter

        self.notifier.publish(session.id, {
            "type": "letter",
            "letter": letter,
            "currentWord": session.current_word,
            "fullText": session.full_text,
        })
        return True

    def complete_word(self, session: SignSession, word: Optional[str] = None) -> Optional[str]:
        word = word or session.current_word
        if not word:
            return None

        if session.full_text:
            session.full_text += " "
        session.full_text += word
        session.last_word = word
        session.current_word = ""

        self.notifier.publish(session.id, {
            "type": "word",
            "word": word,
            "fullText": session.full_text,
        })
        return word

    def correct(self, session: SignSession, kind: str, value: Optional[str] = None):
        validate_correction(kind, value)

        if kind == "letter":
            if session.current_word:
                session.current_word = session.current_word[:-1] + value
        elif kind == "word":
            if " " in session.full_text:
                head, _ = session.full_text.rsplit(" ", 1)
                session.full_text = f"{head} {value}"
            else:
                session.full_text = value
        elif kind == "clearWord":
            session.current_word = ""
        else:
            session.full_text = ""
            session.current_word = ""

        self.notifier.publish(session.id, {
            "type": "correction",
            "currentWord": session.current_word,
            "fullText": session.full_text,
        })
