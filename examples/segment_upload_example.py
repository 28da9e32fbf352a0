#!/usr/bin/env python3
"""Example segment upload to an existing TUS upload resource."""

import logging
import os
import sys

from tus_segments import SegmentUploader, StreamSource, UploadTarget, UrllibTransport


def progress_callback(stats):
    """Display upload progress."""
    bar_length = 50
    filled = int(bar_length * stats.progress_percent / 100)
    bar = "=" * filled + "-" * (bar_length - filled)
    print(
        f"\rProgress: [{bar}] {stats.progress_percent:.1f}% "
        f"({stats.uploaded_bytes}/{stats.total_bytes} bytes, {stats.upload_speed_mbps:.2f} MB/s)",
        end="",
    )
    if stats.uploaded_bytes == stats.total_bytes:
        print()


def server_offset(transport, upload_url):
    """Ask the server how many bytes it already holds."""
    response = transport.execute(transport.build_request(upload_url, "HEAD"))
    if not response.is_success:
        raise SystemExit(f"Error: HEAD {upload_url} returned {response.status}")
    return int(response.get_header("Upload-Offset") or 0)


def main():
    """Run the segment upload example."""
    if len(sys.argv) < 3:
        print("Usage: python segment_upload_example.py <upload_url> <file_path> [stop_at]")
        print(
            "Example: python segment_upload_example.py "
            "http://localhost:8080/files/abc123 /path/to/file.bin"
        )
        sys.exit(1)

    logging.basicConfig(level=logging.INFO)

    upload_url = sys.argv[1]
    file_path = sys.argv[2]
    stop_at = int(sys.argv[3]) if len(sys.argv) > 3 else None

    if not os.path.exists(file_path):
        print(f"Error: File not found: {file_path}")
        sys.exit(1)

    transport = UrllibTransport(headers={"Authorization": "Bearer token"})  # Optional headers
    target = UploadTarget(
        upload_url,
        size=os.path.getsize(file_path),
        on_finished=lambda t: print(f"Upload complete: {t.url}"),
    )

    offset = server_offset(transport, upload_url)
    print(f"Resuming at offset {offset}")

    with SegmentUploader(
        target,
        StreamSource(file_path=file_path),
        offset=offset,
        transport=transport,
        chunk_size=256 * 1024,
        payload_budget=4 * 1024 * 1024,
    ) as uploader:
        uploader.upload(progress_callback=progress_callback, stop_at=stop_at)

    if not uploader.is_complete:
        print(f"\nPaused at {uploader.offset} bytes, run again to resume")


if __name__ == "__main__":
    main()
