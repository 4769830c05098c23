"""
Vocabulary for sequence encoding.

Maps tokens to strictly positive integer ids assigned in first-seen order.
Id 0 is reserved for padding and unknown tokens and is never assigned.
"""

from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Union

import joblib

PAD_ID = 0


class VocabularyUnavailableError(ValueError):
    """Raised when text is encoded before a vocabulary has been built."""


class Vocabulary:
    """
    Immutable token -> id mapping.

    A vocabulary is built once per training run and is the single source
    of truth for encoding any later text, including at inference time.
    """

    def __init__(self, token_to_id: Optional[Mapping[str, int]] = None):
        self._token_to_id: Dict[str, int] = dict(token_to_id or {})

        seen = set()
        for token, idx in self._token_to_id.items():
            if not isinstance(idx, int) or idx <= PAD_ID:
                raise ValueError(f"Invalid id {idx!r} for token {token!r}")
            if idx in seen:
                raise ValueError(f"Duplicate id {idx} in vocabulary")
            seen.add(idx)

    @classmethod
    def from_tokens(cls, tokens) -> 'Vocabulary':
        """Assign ids 1, 2, ... to tokens in encounter order, skipping repeats."""
        token_to_id: Dict[str, int] = {}
        for token in tokens:
            if token not in token_to_id:
                token_to_id[token] = len(token_to_id) + 1
        return cls(token_to_id)

    def id_for(self, token: str) -> int:
        """Id of a token, or PAD_ID when the token is unknown."""
        return self._token_to_id.get(token, PAD_ID)

    @property
    def size(self) -> int:
        return len(self._token_to_id)

    @property
    def embedding_rows(self) -> int:
        """Rows an embedding table needs to cover every id plus the pad id."""
        return self.size + 1

    def tokens(self) -> List[str]:
        """Tokens ordered by id."""
        return sorted(self._token_to_id, key=self._token_to_id.get)

    def to_dict(self) -> Dict[str, int]:
        return dict(self._token_to_id)

    @classmethod
    def from_dict(cls, data: Mapping[str, int]) -> 'Vocabulary':
        return cls({str(token): int(idx) for token, idx in data.items()})

    def save(self, path: Union[str, Path]):
        """Save vocabulary to disk."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(self.to_dict(), path)
        print(f"Saved vocabulary to {path}")

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'Vocabulary':
        """Load vocabulary from disk."""
        return cls.from_dict(joblib.load(path))

    def __len__(self) -> int:
        return self.size

    def __contains__(self, token) -> bool:
        return token in self._token_to_id

    def __iter__(self) -> Iterator[str]:
        return iter(self.tokens())

    def __eq__(self, other) -> bool:
        if not isinstance(other, Vocabulary):
            return NotImplemented
        return self._token_to_id == other._token_to_id

    def __repr__(self) -> str:
        return f"Vocabulary(size={self.size})"
