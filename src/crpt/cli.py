"""
CRPT CLI Tool
Send documents and run rate limiting demonstrations from the command line.
"""

import json
import logging
import sys
import threading
import time
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Callable, Optional

import click
from rich.console import Console
from rich.table import Table

from .client import CrptClient
from .config import get_settings
from .errors import ConfigurationError, SubmissionValidationError
from .models import Description, Document, Product

console = Console()
logger = logging.getLogger(__name__)


def get_client(url: str, limit: int, window: float) -> CrptClient:
    """Create a client instance."""
    return CrptClient(window, limit, url)


def sample_document() -> Document:
    """Build a representative LP_INTRODUCE_GOODS document."""
    return Document(
        doc_id="doc_12345",
        doc_status="NEW",
        doc_type="LP_INTRODUCE_GOODS",
        import_request=False,
        owner_inn="1234567890",
        participant_inn="0987654321",
        producer_inn="1122334455",
        production_date=date(2024, 10, 1),
        reg_date=date(2024, 10, 4),
        reg_number="REG-2024-001",
        production_type="OWN_PRODUCTION",
        description=Description(participant_inn="0987654321"),
        products=[
            Product(
                certificate_document="CERT_DOC_001",
                certificate_document_date=date(2024, 9, 15),
                certificate_document_number="CERT-001-2024",
                owner_inn="1234567890",
                producer_inn="1122334455",
                production_date=date(2024, 10, 1),
                tnved_code="0101210000",
                uit_code="01234567890123",
                uitu_code="98765432109876",
            )
        ],
    )


# =========================================================================
# Demo scenarios
# =========================================================================


@dataclass
class ScenarioResult:
    """Outcome of one demo scenario."""

    name: str
    ok: bool
    elapsed_ms: float
    detail: str


def _send_tolerant(client: CrptClient, signature: str, failures: list[Exception]) -> None:
    """Send the sample document, collecting network failures instead of stopping."""
    try:
        client.create_document(sample_document(), signature)
    except Exception as e:
        failures.append(e)


def scenario_single(url: str) -> ScenarioResult:
    """Send one document."""
    failures: list[Exception] = []
    start = time.perf_counter()
    with get_client(url, 5, 1.0) as client:
        _send_tolerant(client, "test_signature", failures)
    elapsed = (time.perf_counter() - start) * 1000
    detail = "sent" if not failures else f"API unavailable ({type(failures[0]).__name__})"
    return ScenarioResult("single", True, elapsed, detail)


def scenario_rate(url: str) -> ScenarioResult:
    """Send 5 documents sequentially at 3 requests per second."""
    failures: list[Exception] = []
    start = time.perf_counter()
    with get_client(url, 3, 1.0) as client:
        for i in range(1, 6):
            _send_tolerant(client, f"sig_{i}", failures)
    elapsed = (time.perf_counter() - start) * 1000
    # The 4th request must wait for the first to leave the window.
    return ScenarioResult("rate", elapsed >= 1000, elapsed, f"5 requests, {len(failures)} failed")


def scenario_concurrency(url: str) -> ScenarioResult:
    """Two threads send 3 documents each at 2 requests per second."""
    failures: list[Exception] = []
    peak = 0
    lock = threading.Lock()

    with get_client(url, 2, 1.0) as client:

        def worker(prefix: str) -> None:
            nonlocal peak
            for i in range(1, 4):
                _send_tolerant(client, f"{prefix}_{i}", failures)
                active = client.limiter.check().active
                with lock:
                    peak = max(peak, active)

        start = time.perf_counter()
        threads = [threading.Thread(target=worker, args=(f"t{n}",)) for n in (1, 2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        elapsed = (time.perf_counter() - start) * 1000

    ok = elapsed >= 2000 and peak <= 2
    return ScenarioResult(
        "concurrency", ok, elapsed, f"6 requests, peak {peak} in window, {len(failures)} failed"
    )


def scenario_validation(url: str) -> ScenarioResult:
    """Check that bad configuration and bad submissions are rejected."""
    passed = 0
    start = time.perf_counter()

    checks: list[Callable[[], object]] = [
        lambda: CrptClient(1.0, -1, url),
        lambda: CrptClient(1.0, 5, ""),
    ]
    for check in checks:
        try:
            check()
        except ConfigurationError:
            passed += 1

    with get_client(url, 5, 1.0) as client:
        for document, signature in ((None, "signature"), (sample_document(), "")):
            try:
                client.create_document(document, signature)
            except SubmissionValidationError:
                passed += 1

    elapsed = (time.perf_counter() - start) * 1000
    return ScenarioResult("validation", passed == 4, elapsed, f"{passed}/4 checks passed")


SCENARIOS: dict[str, Callable[[str], ScenarioResult]] = {
    "single": scenario_single,
    "rate": scenario_rate,
    "concurrency": scenario_concurrency,
    "validation": scenario_validation,
}


# =========================================================================
# Commands
# =========================================================================


@click.group()
@click.option("--url", "-u", default=None, help="Document creation endpoint")
@click.option("--log-level", default=None, help="Logging level")
@click.pass_context
def cli(ctx, url: Optional[str], log_level: Optional[str]):
    """CRPT client - rate-limited document registration."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, (log_level or settings.log_level).upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["url"] = url or settings.api_url


@cli.command()
@click.option("--signature", "-s", required=True, help="Document signature")
@click.option(
    "--file", "-f", "path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None, help="Document JSON file (default: sample document)",
)
@click.option("--limit", "-n", type=int, default=None, help="Requests per window")
@click.option("--window", "-w", type=float, default=None, help="Window length in seconds")
@click.pass_context
def send(ctx, signature: str, path: Optional[Path], limit: Optional[int], window: Optional[float]):
    """Send a single document."""
    settings = get_settings()
    limit = limit if limit is not None else settings.request_limit
    window = window if window is not None else settings.window_seconds
    try:
        document = Document.from_dict(json.loads(path.read_text())) if path else sample_document()
        with get_client(ctx.obj["url"], limit, window) as client:
            response = client.create_document(document, signature)
            state = client.limiter.check()
        color = "green" if response.is_success else "yellow"
        console.print(f"[{color}]HTTP {response.status_code}[/{color}]")
        if response.text:
            console.print(response.text)

        table = Table(title="Limiter")
        table.add_column("Field", style="cyan")
        table.add_column("Value", justify="right")
        for key, value in state.to_dict().items():
            table.add_row(key, "-" if value is None else str(value))
        console.print(table)
    except Exception as e:
        console.print(f"❌ [red]Error: {e}[/red]")
        sys.exit(1)


@cli.command()
@click.option(
    "--scenario", "-c", type=click.Choice([*SCENARIOS, "all"]), default="all",
    help="Scenario to run",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def demo(ctx, scenario: str, as_json: bool):
    """Run rate limiting demonstrations against the endpoint.

    Each scenario runs with its own fixed limit and window.
    """
    names = list(SCENARIOS) if scenario == "all" else [scenario]
    results = []
    for name in names:
        logger.info(f"Running scenario {name}")
        results.append(SCENARIOS[name](ctx.obj["url"]))

    if as_json:
        data = [
            {"scenario": r.name, "ok": r.ok, "elapsed_ms": round(r.elapsed_ms), "detail": r.detail}
            for r in results
        ]
        console.print(json.dumps(data, indent=2))
    else:
        table = Table(title="Rate Limiting Demo")
        table.add_column("Scenario", style="cyan")
        table.add_column("Result")
        table.add_column("Elapsed", justify="right")
        table.add_column("Detail", style="dim")

        for r in results:
            table.add_row(
                r.name,
                "[green]OK[/green]" if r.ok else "[red]FAIL[/red]",
                f"{r.elapsed_ms:.0f}ms",
                r.detail,
            )

        console.print(table)

    if not all(r.ok for r in results):
        sys.exit(1)


def main():
    """CLI entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
