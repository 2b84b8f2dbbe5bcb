"""
Interactive batch runner for the InvoiceStream API.

Processes the input directory one invoice at a time and asks for
confirmation before moving on to the next one.

Usage:
    $ python scripts/run_batch.py [API_BASE_URL]
"""
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from client.api_service import check_backend_health, stream_invoice_events
from client.batch_controller import BatchCursorController
from client.config import API_BASE_URL

console = Console()


def print_event(event):
    event_type = event.get("type")
    if event_type == "info":
        console.print(f"[bold cyan]ℹ️  {event.get('message')}[/bold cyan]")
    elif event_type == "file_update":
        record = event.get("data", {})
        progress = event.get("progress", {})
        status = record.get("status", "")
        style = "red" if status.startswith("error_") or status == "validation_failed" else "white"
        console.print(
            f"   [{progress.get('current')}/{progress.get('total')}] "
            f"{record.get('fileName')}: [{style}]{status}[/{style}]"
        )
    elif event_type == "index_processed":
        console.print(f"[bold green]✅ {event.get('message')}[/bold green]")
    elif event_type == "error":
        console.print(f"[bold red]❌ {event.get('message')}[/bold red]")


def print_record(record):
    if not record:
        return
    table = Table(title=record.get("fileName"), show_header=False)
    table.add_row("Status", str(record.get("status")))
    table.add_row("Output file", str(record.get("outputFilename") or "-"))
    if record.get("errorDetail"):
        table.add_row("Error", str(record["errorDetail"]))
    parsed = record.get("parsedData") or {}
    for key in ("supplier_name", "invoice_number", "invoice_date", "grand_total", "currency"):
        if key in parsed:
            table.add_row(key, str(parsed[key]))
    console.print(table)


def run(base_url=API_BASE_URL):
    if not check_backend_health(f"{base_url}/health"):
        console.print(f"[bold red]❌ Backend is not reachable at {base_url}.[/bold red]")
        return

    endpoint = f"{base_url}/process-invoices"
    source = lambda index: stream_invoice_events(index, endpoint=endpoint)

    controller = BatchCursorController(event_source=source, on_event=print_event)
    controller.start()

    while controller.is_waiting_for_acceptance:
        print_record(controller.current_record)
        if not Confirm.ask("Accept and process the next invoice?", default=True):
            controller.stop()
            break
        controller.accept_and_continue()

    print_record(controller.current_record)
    console.print(f"\n[bold]{controller.message}[/bold]")
    console.print(f"Processed {len(controller.results)} of {controller.total_count} files.")


if __name__ == "__main__":
    run(sys.argv[1].rstrip("/") if len(sys.argv) > 1 else API_BASE_URL)
