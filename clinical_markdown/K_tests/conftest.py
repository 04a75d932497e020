# clinical_markdown/K_tests/conftest.py
"""
Pytest configuration and fixtures for clinical_markdown tests.

Provides:
- Sample documents covering every section route
- Default and customized parser configurations
- Log capture and logger reset helpers

Usage:
    # In test files, fixtures are automatically available:
    def test_pipeline(pipeline, sample_document):
        doc = pipeline.parse(sample_document)
        assert doc.title == "Atrial Fibrillation"
"""

import logging
import sys
from pathlib import Path
from typing import Generator

import pytest

# Add clinical_markdown to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from A_core.A00_logging import ROOT_LOGGER_NAME  # noqa: E402
from G_config.G02_parser_config import ParserConfig, default_config  # noqa: E402
from H_pipeline.H01_document_pipeline import DocumentPipeline  # noqa: E402


SAMPLE_DOCUMENT = """# Atrial Fibrillation

Atrial fibrillation is the most common sustained arrhythmia in adults.

## Clinical Findings

### Symptoms
- Palpitations
- Dyspnea
<ClinicalItem>Fatigue</ClinicalItem>

### Vital Signs
- Irregularly irregular pulse

<ClinicalSection type="Medical History">
<ClinicalItem>Hypertension</ClinicalItem>
</ClinicalSection>

## Diagnosis

| Finding | LR+ | Value |
|---|---|---|
| Irregular pulse | 8.5 (2.1-15) | ... |
| Palpitations | 1.2 | ... |

## Management

**As per ESC 2023 guidelines:** Anticoagulation is recommended. Evidence Level: Class A

### Stroke Risk
*Calculator Available*

**ACC/AHA 2019:** Do not use aspirin alone for stroke prevention.

## Major Clinical Studies

### 2019 • [AFFIRM](https://pubmed.ncbi.nlm.nih.gov/12466506/)
Rate control was non-inferior to rhythm control.
*Wyse DG et al. N Engl J Med. 2002.*

## References

1. Hindricks G, et al. **Eur Heart J**. 2021. [PubMed](https://pubmed.ncbi.nlm.nih.gov/32860505/)
2. January CT, et al. Circulation. 2019.
"""


# =============================================================================
# DOCUMENT FIXTURES
# =============================================================================

@pytest.fixture
def sample_document() -> str:
    """A document exercising every section route."""
    return SAMPLE_DOCUMENT


@pytest.fixture
def sample_file(tmp_path: Path, sample_document: str) -> Path:
    """The sample document written to a temporary markdown file."""
    path = tmp_path / "atrial_fibrillation.md"
    path.write_text(sample_document, encoding="utf-8")
    return path


# =============================================================================
# CONFIGURATION FIXTURES
# =============================================================================

@pytest.fixture
def config() -> ParserConfig:
    """The packaged default configuration."""
    return default_config()


@pytest.fixture
def custom_config() -> ParserConfig:
    """Configuration with an extra organization and the very_strong band enabled."""
    return ParserConfig.from_dict(
        {
            "organizations": {
                "ESC": "European Society of Cardiology",
                "NICE": "National Institute for Health and Care Excellence",
            },
            "likelihood_ratio": {
                "positive_very_strong": 20.0,
                "negative_very_strong": 0.05,
            },
        }
    )


@pytest.fixture
def pipeline(config: ParserConfig) -> DocumentPipeline:
    return DocumentPipeline(config)


# =============================================================================
# UTILITY FIXTURES
# =============================================================================

@pytest.fixture
def capture_logs(caplog: pytest.LogCaptureFixture):
    """Capture project log messages for assertions."""
    caplog.set_level(logging.DEBUG, logger=ROOT_LOGGER_NAME)
    yield caplog


@pytest.fixture(autouse=True)
def reset_project_logger() -> Generator[None, None, None]:
    """Drop handlers added by configure_logging so streams never outlive a test."""
    yield
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(logging.NOTSET)


# =============================================================================
# TEST MARKERS
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks end-to-end tests touching the file system"
    )
