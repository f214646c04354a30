import re
import threading
import pymorphy3
import structlog

logger = structlog.get_logger(__name__)

# Functional parts of speech: conjunctions, interjections, prepositions, particles
EXCLUDED_PARTS_OF_SPEECH = frozenset(['CONJ', 'INTJ', 'PREP', 'PRCL'])

_non_word = re.compile(r'[^а-яё\s-]')

_default = None
_default_lock = threading.Lock()


def default_lemmatizer():
    """Process-wide Lemmatizer; loading the dictionaries is slow."""
    global _default

    with _default_lock:
        if _default is None:
            _default = Lemmatizer()

        return _default


class Lemmatizer:
    def __init__(self, morph=None):
        self.morph = morph or pymorphy3.MorphAnalyzer(lang='ru')

    def tokens(self, text):
        words = _non_word.sub(' ', text.lower()).split()
        for word in words:
            word = word.strip('-')
            if word:
                yield word

    def is_functional(self, parses):
        for p in parses:
            if p.tag.POS in EXCLUDED_PARTS_OF_SPEECH:
                return True

        return False

    def normal_form(self, word):
        parses = self.morph.parse(word)
        if not parses:
            return None

        return parses[0].normal_form or None

    def lemmatize(self, text):
        """Count the dictionary forms of the words in text.

        Functional words are left out, as are words the analyzer can't handle."""
        counts = {}

        for word in self.tokens(text):
            try:
                parses = self.morph.parse(word)
                if not parses or self.is_functional(parses):
                    continue

                lemma = parses[0].normal_form
            except Exception:
                logger.warning("lemmatize_word_failed", word=word, exc_info=True)
                continue

            if not lemma:
                continue

            counts[lemma] = counts.get(lemma, 0) + 1

        return counts
