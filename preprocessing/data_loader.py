"""
Data Loader Module for Fake News Detection System

Loads labeled news records for the sequence classifiers. Records come
either from the built-in sample corpus or from a CSV file with
title, text and label columns (label: "real" / "fake").
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
from config import LABEL_FAKE, LABEL_REAL, RAW_DATA_DIR

VALID_LABELS = ("real", "fake")


@dataclass(frozen=True)
class NewsRecord:
    """A labeled news article."""

    title: str
    text: str
    label: str  # "real" or "fake"

    def __post_init__(self):
        if self.label not in VALID_LABELS:
            raise ValueError(f"Invalid label {self.label!r}, expected one of {VALID_LABELS}")

    @property
    def full_text(self) -> str:
        """Title and body joined by a space."""
        return f"{self.title} {self.text}"

    @property
    def binary_label(self) -> int:
        """1 for fake, 0 for real."""
        return LABEL_FAKE if self.label == "fake" else LABEL_REAL


SAMPLE_DATASET: List[NewsRecord] = [
    NewsRecord(
        title="Scientists Discover New Planet in Solar System",
        text="Astronomers have discovered a new planet beyond Neptune. The planet, temporarily named Planet X, is approximately twice the size of Earth and orbits the sun once every 10,000 years.",
        label="real",
    ),
    NewsRecord(
        title="BREAKING: Aliens Land on White House Lawn",
        text="Extraterrestrial beings arrived in Washington D.C. today demanding to speak with world leaders. The government is covering up this historic event. Share this before it gets deleted!",
        label="fake",
    ),
    NewsRecord(
        title="New Study Shows Benefits of Regular Exercise",
        text="A comprehensive study published in the Journal of Medicine reveals that regular physical activity significantly reduces the risk of cardiovascular disease and improves mental health outcomes.",
        label="real",
    ),
    NewsRecord(
        title="Doctors Hate This One Weird Trick to Lose Weight",
        text="This miracle berry from the Amazon rainforest will make you lose 50 pounds in one week without any diet or exercise. Big Pharma doesn't want you to know about this secret.",
        label="fake",
    ),
    NewsRecord(
        title="Global Climate Summit Reaches Historic Agreement",
        text="World leaders have reached a landmark agreement on climate action at the international summit. The treaty includes commitments to reduce carbon emissions by 50% by 2030.",
        label="real",
    ),
    NewsRecord(
        title="Shocking Truth About Vaccines That Will Change Everything",
        text="Secret government documents reveal that vaccines contain mind control chips. The mainstream media refuses to report this but thousands of doctors have come forward to expose the truth.",
        label="fake",
    ),
    NewsRecord(
        title="Tech Company Announces Revolutionary Battery Technology",
        text="A leading technology firm has developed a new lithium-air battery that could triple the range of electric vehicles. The innovation is expected to be commercially available within three years.",
        label="real",
    ),
    NewsRecord(
        title="Celebrity Dies and Comes Back to Life with Important Message",
        text="Famous actor was clinically dead for 20 minutes and returned with a warning about the end of the world. Doctors are baffled and can't explain what happened. Click to see the shocking video.",
        label="fake",
    ),
    NewsRecord(
        title="Economic Report Shows Steady Growth in Manufacturing Sector",
        text="The latest economic indicators show that the manufacturing sector has experienced consistent growth over the past quarter. Employment in the sector has increased by 2.3% according to government statistics.",
        label="real",
    ),
    NewsRecord(
        title="Pope Declares Support for Radical Political Movement",
        text="In a shocking announcement, the Pope has endorsed a controversial political ideology. The Vatican denies these claims but leaked documents prove otherwise. This is what they don't want you to know.",
        label="fake",
    ),
    NewsRecord(
        title="Archaeological Team Uncovers Ancient Ruins in Peru",
        text="Researchers have discovered well-preserved ruins of a pre-Incan civilization in the mountains of Peru. The site includes temples and residential structures dating back over 3,000 years.",
        label="real",
    ),
    NewsRecord(
        title="5G Towers Confirmed to Control Weather and Cause Earthquakes",
        text="Whistleblower reveals that 5G technology is being used by governments to manipulate weather patterns and trigger natural disasters. Scientists are silenced when they try to speak out.",
        label="fake",
    ),
]


class NewsDataLoader:
    """
    Loader for labeled news corpora.

    The CSV format mirrors the Kaggle Fake News dataset: one row per
    article with title, text and label columns.
    """

    def __init__(self, text_column: str = 'text', title_column: str = 'title',
                 label_column: str = 'label'):
        self.text_column = text_column
        self.title_column = title_column
        self.label_column = label_column

    def load_csv(self, path: Optional[Union[str, Path]] = None) -> Optional[List[NewsRecord]]:
        """
        Load records from a CSV file.

        Args:
            path: Path to the CSV (default: data/raw/news.csv)

        Returns:
            List of records, or None if the file does not exist
        """
        if path is None:
            path = RAW_DATA_DIR / "news.csv"

        if not os.path.exists(path):
            print(f"Dataset file not found at: {path}")
            return None

        print(f"Loading dataset from {path}...")
        data = pd.read_csv(path)
        records = self.from_dataframe(data)
        print(f"Loaded {len(records)} articles: {self.get_class_distribution(records)}")
        return records

    def from_dataframe(self, data: pd.DataFrame) -> List[NewsRecord]:
        """
        Convert a DataFrame to records.

        Missing titles or texts become empty strings. Labels are matched
        case-insensitively; rows with any other label are dropped.
        """
        missing = {self.label_column, self.text_column} - set(data.columns)
        if missing:
            raise ValueError(f"Missing required columns: {sorted(missing)}")

        data = data.copy()
        if self.title_column not in data.columns:
            data[self.title_column] = ''

        data[self.title_column] = data[self.title_column].fillna('').astype(str)
        data[self.text_column] = data[self.text_column].fillna('').astype(str)
        data[self.label_column] = data[self.label_column].astype(str).str.strip().str.lower()

        before = len(data)
        data = data[data[self.label_column].isin(VALID_LABELS)]
        if len(data) < before:
            print(f"Warning: Dropped {before - len(data)} rows with unknown labels")

        return [
            NewsRecord(title=row[self.title_column], text=row[self.text_column],
                       label=row[self.label_column])
            for _, row in data.iterrows()
        ]

    @staticmethod
    def get_class_distribution(records: List[NewsRecord]) -> Dict[str, int]:
        """Count records per label."""
        distribution = {label: 0 for label in VALID_LABELS}
        for record in records:
            distribution[record.label] += 1
        return distribution


def load_records(path: Optional[Union[str, Path]] = None) -> List[NewsRecord]:
    """
    Convenience function: load a CSV corpus, falling back to the sample corpus.

    Args:
        path: CSV path, or None to use the sample corpus

    Returns:
        List of records
    """
    if path is None:
        return list(SAMPLE_DATASET)

    records = NewsDataLoader().load_csv(path)
    if records is None:
        print("Falling back to the built-in sample dataset.")
        return list(SAMPLE_DATASET)
    return records
