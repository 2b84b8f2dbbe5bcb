"""
InvoiceStream API Usage Example
===============================

This script demonstrates how to consume the InvoiceStream streaming API
directly with ``requests``, without the batch controller.

Operations Demonstrated:
------------------------
    1. Health Check: Confirm the server can see its input and schema.
    2. Single Document: Stream the progress of the document at one index.
    3. Whole Batch: Walk every index without waiting for confirmation.

Prerequisites:
--------------
    - InvoiceStream API server running on localhost:8007
    - Invoices (PDF/JPEG/JPG) in the server's input-files directory
    - Python requests library: pip install requests

Usage:
------
    python examples/basic_usage.py
"""
import json
import requests

# Configuration
API_BASE_URL = "http://localhost:8007/api/v1"


def health_check() -> dict:
    """
    Check API health status.

    Returns:
        dict: Health status with input/schema availability flags.
    """
    response = requests.get(f"{API_BASE_URL}/health", timeout=5)
    response.raise_for_status()
    return response.json()


def process_index(start_index: int) -> dict:
    """
    Stream the processing of one document and return the final event.

    Prints every status change as it arrives.

    Args:
        start_index: Index of the document in the server's input listing.

    Returns:
        dict: The terminal ``index_processed`` or ``error`` event.
    """
    with requests.get(
        f"{API_BASE_URL}/process-invoices",
        params={"start_index": start_index},
        stream=True,
        timeout=(10, 600),
    ) as response:
        response.raise_for_status()
        for line in response.iter_lines(decode_unicode=True):
            if not line or not line.startswith("data: "):
                continue
            event = json.loads(line[6:])
            if event["type"] == "file_update":
                data = event["data"]
                print(f"  {data['fileName']}: {data['status']}")
            elif event["type"] == "info":
                print(event["message"])
            else:
                return event
    return {"type": "error", "message": "Stream ended without a final event"}


def process_all() -> list:
    """
    Process every document in order, without pausing between them.

    Returns:
        list: The ``processedFileResult`` of each document.
    """
    results = []
    index = 0
    while True:
        event = process_index(index)
        if event["type"] == "error":
            print(f"Error: {event['message']}")
            break
        if event.get("processedFileResult"):
            results.append(event["processedFileResult"])
        if event["isOverallLastFile"]:
            break
        index += 1
    return results


def main():
    """Run the example workflow."""
    print("=" * 60)
    print("InvoiceStream API Usage Examples")
    print("=" * 60)

    print("\n1. Health Check")
    print(json.dumps(health_check(), indent=2))

    print("\n2. Whole Batch")
    for result in process_all():
        print(f"  {result['fileName']} -> {result['status']} ({result.get('outputFilename')})")


if __name__ == "__main__":
    main()
