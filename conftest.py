from pathlib import Path

import pytest

from retrieval.csv_datasource import clear_cache

SAMPLE_CSV = Path(__file__).parent / "data" / "gita-shloks.csv"

SMALL_CSV = """// first comment
// second comment
chapter,verse,sanskrit,transliteration,english_meaning,application
1,1,"धृतराष्ट्र उवाच","dhṛtarāṣṭra uvāca","Dhritarashtra said","Listen carefully"
2,47,"कर्मण्येवाधिकारस्ते","karmaṇy evādhikāras te","You have a right to action, never to its fruits","Do the work"
2,48,"योगस्थः कुरु कर्माणि","yoga-sthaḥ kuru karmāṇi","Perform action established in yoga"
"""


@pytest.fixture(autouse=True)
def _clear_corpus_cache():
    clear_cache()
    yield
    clear_cache()


@pytest.fixture
def sample_csv_path() -> Path:
    return SAMPLE_CSV


@pytest.fixture
def small_csv(tmp_path) -> Path:
    path = tmp_path / "gita-shloks.csv"
    path.write_text(SMALL_CSV, encoding="utf-8")
    return path


@pytest.fixture
def empty_csv(tmp_path) -> Path:
    path = tmp_path / "empty.csv"
    path.write_text("// nothing here yet\nchapter,verse,sanskrit,transliteration,english_meaning\n", encoding="utf-8")
    return path
