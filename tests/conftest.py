"""Pytest configuration and shared fixtures."""

import os
import sys
from pathlib import Path

import pytest

# Add project root and src to path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))

# Set config path for tests
os.environ.setdefault("FR_CONFIG_DIR", str(ROOT / "config"))


@pytest.fixture
def project_root():
    return ROOT


@pytest.fixture
def example_rules_file(project_root):
    return project_root / "config" / "rules" / "examples.yaml"


@pytest.fixture
def example_features_file(project_root):
    return project_root / "examples" / "node-features.yaml"


@pytest.fixture
def features():
    """A small in-memory feature document."""
    from feature_rules.expression.types import Features, InstanceFeature

    return Features(
        flags={"cpu.cpuid": {"SSE4", "AVX2", "AVX"}},
        attributes={"cpu.topology": {"cores": "8", "hyperthreading": "true"}},
        instances={
            "pci.device": [
                InstanceFeature({"vendor": "Y", "class": "0200"}),
                InstanceFeature({"vendor": "X", "class": "0300"}),
                InstanceFeature({"vendor": "X", "class": "0200"}),
            ]
        },
    )
