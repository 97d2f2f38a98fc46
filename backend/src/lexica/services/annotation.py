"""Dictionary-based token annotation for stored sentences.

Annotations are computed once when a sentence is stored and cached on the
sentence row, so the review screen can show glosses without tokenizing and
querying the dictionary on every render.
"""

import re
from typing import Awaitable, Callable, Protocol, Sequence

from pydantic import BaseModel, Field

from lexica.models.dictionary import DictionaryEntry
from lexica.models.word import Word

DictionaryLookup = Callable[[str], Awaitable[Sequence[DictionaryEntry]]]

_TOKEN = re.compile(r"\w+(?:['’-]\w+)*", re.UNICODE)


class DictionaryGloss(BaseModel):
    """Dictionary sense attached to a token."""

    word: str
    pos: str | None = None
    glosses: list[str] = Field(default_factory=list)


class PrecomputedToken(BaseModel):
    """One word or multi-word phrase of a sentence."""

    text: str
    is_target_word: bool = False
    dictionary_form: str | None = None
    dictionary_key: str | None = None
    word_id: int | None = None
    dictionary_entries: list[DictionaryGloss] = Field(default_factory=list)


class Annotator(Protocol):
    """Computes token annotations for a sentence."""

    async def annotate(
        self,
        sentence_text: str,
        target_word: Word,
        all_words: Sequence[Word],
        dictionary_lookup: DictionaryLookup,
    ) -> list[PrecomputedToken]: ...


def tokenize(sentence: str) -> list[str]:
    """Split a sentence into word tokens (punctuation dropped, apostrophes kept)."""
    return _TOKEN.findall(sentence)


class DictionaryAnnotator:
    """Greedy longest-match annotator.

    At each position, phrases of up to ``max_phrase_words`` tokens are tried
    longest first; a phrase is taken when it is a known vocabulary word or has
    dictionary entries. Single tokens are always emitted.
    """

    def __init__(self, max_phrase_words: int = 3):
        self.max_phrase_words = max_phrase_words

    async def annotate(
        self,
        sentence_text: str,
        target_word: Word,
        all_words: Sequence[Word],
        dictionary_lookup: DictionaryLookup,
    ) -> list[PrecomputedToken]:
        tokens = tokenize(sentence_text)
        if not tokens:
            return []

        known = {w.word.lower(): w for w in all_words}
        target = target_word.word.lower()
        cache: dict[str, Sequence[DictionaryEntry]] = {}

        async def lookup(key: str) -> Sequence[DictionaryEntry]:
            if key not in cache:
                cache[key] = await dictionary_lookup(key)
            return cache[key]

        result: list[PrecomputedToken] = []
        i = 0
        while i < len(tokens):
            span = 1
            for n in range(min(self.max_phrase_words, len(tokens) - i), 1, -1):
                phrase = " ".join(tokens[i : i + n]).lower()
                if phrase == target or phrase in known or await lookup(phrase):
                    span = n
                    break

            text = " ".join(tokens[i : i + span])
            key = text.lower()
            entries = await lookup(key)
            known_word = known.get(key)

            result.append(
                PrecomputedToken(
                    text=text,
                    is_target_word=key == target,
                    dictionary_form=entries[0].word if entries else None,
                    dictionary_key=key if entries else None,
                    word_id=known_word.id if known_word else None,
                    dictionary_entries=[
                        DictionaryGloss(word=e.word, pos=e.pos, glosses=list(e.glosses or []))
                        for e in entries
                    ],
                )
            )
            i += span

        return result
