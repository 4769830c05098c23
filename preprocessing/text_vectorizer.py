"""
Text Vectorization Module for Fake News Detection System

This module turns raw article text into model input:
- Cleaning (lowercase, punctuation and digit removal, whitespace collapse)
- Stop-word and short-token removal
- Whitespace tokenization
- Vocabulary construction (first-seen order)
- Fixed-length integer sequence encoding
- TF-IDF vectors (auxiliary)

Every step is a pure function of its input and of the stop-word set the
vectorizer was created with.
"""

import math
import re
import sys
from collections import Counter
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional, Tuple

import numpy as np

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
from config import MAX_SEQUENCE_LENGTH, MIN_TOKEN_LENGTH
from preprocessing.vocabulary import PAD_ID, Vocabulary, VocabularyUnavailableError


# Closed list of English function words. Entries with apostrophes can never
# match after cleaning, but are kept so the set stays identical to the one
# the models were designed against.
STOP_WORDS: FrozenSet[str] = frozenset([
    'i', 'me', 'my', 'myself', 'we', 'our', 'ours', 'ourselves', 'you', "you're", "you've",
    "you'll", "you'd", 'your', 'yours', 'yourself', 'yourselves', 'he', 'him', 'his',
    'himself', 'she', "she's", 'her', 'hers', 'herself', 'it', "it's", 'its', 'itself',
    'they', 'them', 'their', 'theirs', 'themselves', 'what', 'which', 'who', 'whom',
    'this', 'that', "that'll", 'these', 'those', 'am', 'is', 'are', 'was', 'were', 'be',
    'been', 'being', 'have', 'has', 'had', 'having', 'do', 'does', 'did', 'doing', 'a',
    'an', 'the', 'and', 'but', 'if', 'or', 'because', 'as', 'until', 'while', 'of', 'at',
    'by', 'for', 'with', 'about', 'against', 'between', 'into', 'through', 'during',
    'before', 'after', 'above', 'below', 'to', 'from', 'up', 'down', 'in', 'out', 'on',
    'off', 'over', 'under', 'again', 'further', 'then', 'once',
])


class TextVectorizer:
    """
    Text cleaning and encoding for the sequence classifiers.

    Attributes:
        stop_words: Tokens dropped by remove_stop_words
        min_token_length: Tokens shorter than this are dropped
    """

    def __init__(
        self,
        stop_words: Optional[Iterable[str]] = None,
        min_token_length: int = MIN_TOKEN_LENGTH
    ):
        """
        Initialize the TextVectorizer.

        Args:
            stop_words: Stop-word set (default: STOP_WORDS)
            min_token_length: Minimum character length for tokens to keep
        """
        self.stop_words = frozenset(STOP_WORDS if stop_words is None else stop_words)
        self.min_token_length = min_token_length

        # Compile regex patterns for efficiency
        self.special_chars_pattern = re.compile(r'[^A-Za-z0-9_\s]')
        self.digit_pattern = re.compile(r'[0-9]+')
        self.whitespace_pattern = re.compile(r'\s+')

    def clean(self, text: str) -> str:
        """
        Normalize raw text.

        Lowercases, replaces every non-word, non-space character with a
        space, strips digits, collapses whitespace runs and trims.

        Args:
            text: Input text

        Returns:
            Cleaned text
        """
        if not text:
            return ""

        text = text.lower()
        text = self.special_chars_pattern.sub(' ', text)
        text = self.digit_pattern.sub('', text)
        text = self.whitespace_pattern.sub(' ', text)
        return text.strip()

    def remove_stop_words(self, text: str) -> str:
        """
        Drop stop words and short tokens.

        Args:
            text: Cleaned text

        Returns:
            Text with only the surviving tokens, single-space separated
        """
        return ' '.join(
            word for word in text.split(' ')
            if word not in self.stop_words and len(word) >= self.min_token_length
        )

    def preprocess(self, text: str) -> str:
        """Full preprocessing pipeline: clean, then remove stop words."""
        return self.remove_stop_words(self.clean(text))

    def tokenize(self, text: str) -> List[str]:
        """Split preprocessed text on single spaces, discarding empty tokens."""
        return [token for token in text.split(' ') if token]

    def build_vocabulary(self, texts: Iterable[str]) -> Vocabulary:
        """
        Build a vocabulary from texts.

        Ids are assigned from 1 in the order tokens are first encountered,
        walking the texts in the given order. No sorting, no id reuse.

        Args:
            texts: Raw or preprocessed documents

        Returns:
            Vocabulary covering every token of every text
        """
        return Vocabulary.from_tokens(
            token
            for text in texts
            for token in self.tokenize(self.preprocess(text))
        )

    def encode(
        self,
        text: str,
        vocabulary: Optional[Vocabulary],
        max_length: int = MAX_SEQUENCE_LENGTH
    ) -> List[int]:
        """
        Encode text to a fixed-length sequence of vocabulary ids.

        Unknown tokens map to 0. The first max_length tokens are kept and
        the result is right-padded with 0.

        Args:
            text: Input text
            vocabulary: Vocabulary to look tokens up in
            max_length: Exact length of the returned sequence

        Returns:
            List of exactly max_length ids

        Raises:
            VocabularyUnavailableError: If no vocabulary is given
        """
        if vocabulary is None:
            raise VocabularyUnavailableError(
                "Vocabulary not built. Call prepare_dataset() first."
            )

        tokens = self.tokenize(self.preprocess(text))
        sequence = [vocabulary.id_for(token) for token in tokens[:max_length]]
        sequence += [PAD_ID] * (max_length - len(sequence))
        return sequence

    def encode_batch(
        self,
        texts: Iterable[str],
        vocabulary: Optional[Vocabulary],
        max_length: int = MAX_SEQUENCE_LENGTH,
        show_progress: bool = False
    ) -> List[List[int]]:
        """
        Encode a batch of texts.

        Args:
            texts: Texts to encode
            vocabulary: Vocabulary to look tokens up in
            max_length: Exact length of each sequence
            show_progress: If True, show progress bar

        Returns:
            List of encoded sequences
        """
        if show_progress:
            from tqdm import tqdm
            texts = tqdm(texts, desc="Encoding texts")

        return [self.encode(text, vocabulary, max_length) for text in texts]

    def compute_tfidf(self, texts: List[str]) -> Tuple[np.ndarray, List[str]]:
        """
        Compute dense TF-IDF vectors.

        Term frequency is normalized by the document's most frequent term.
        Document frequency counts the documents whose preprocessed string
        contains the word as a substring (so "art" is found in "article").

        Args:
            texts: Raw documents

        Returns:
            Tuple of (vectors of shape (n_docs, n_terms), terms in first-seen order)
        """
        processed = [self.preprocess(text) for text in texts]
        tokenized = [self.tokenize(text) for text in processed]

        vocabulary = list(dict.fromkeys(
            token for tokens in tokenized for token in tokens
        ))

        n_docs = len(processed)
        idf = np.array([
            math.log(n_docs / (sum(1 for text in processed if word in text) or 1))
            for word in vocabulary
        ], dtype=np.float64)

        vectors = np.zeros((n_docs, len(vocabulary)), dtype=np.float64)
        column = {word: j for j, word in enumerate(vocabulary)}

        for i, tokens in enumerate(tokenized):
            if not tokens:
                continue
            counts = Counter(tokens)
            max_freq = max(counts.values())
            for word, count in counts.items():
                j = column[word]
                vectors[i, j] = (count / max_freq) * idf[j]

        return vectors, vocabulary
