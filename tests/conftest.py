import pytest

from ai_cost_compare.core.catalog import load_pricing_table
from ai_cost_compare.logging import setup_logging

SAMPLE_TSV = "\n".join([
    "Provider\tModel\tInput $/1M\tOutput $/1M",
    "OpenAI\tgpt-5\t$1.25\t$10.00",
    "OpenAI\tgpt-5-mini\t$0.25\t$2.00",
    "Anthropic\tclaude-sonnet-4.5\t$3.00\t$15.00",
    "Google\tgemini-2.5-pro\t$2.00\t$14.00",
])


@pytest.fixture(autouse=True, scope="session")
def quiet_logging():
    """
    route structlog through stdlib logging at WARNING so
    debug/info events never reach captured stdout.
    """
    setup_logging("warning")


@pytest.fixture()
def sample_tsv() -> str:
    return SAMPLE_TSV


@pytest.fixture()
def catalog(sample_tsv):
    return load_pricing_table(sample_tsv)
