"""
HTTP file download.
Streams a response body into a local directory and reports progress.
"""
import logging
from pathlib import Path
from typing import Callable, Optional

import requests

logger = logging.getLogger('worklist.download')

CHUNK_SIZE = 8192


def http_file_download(
    response: requests.Response,
    directory: Path,
    file_name: str,
    observer: Optional[Callable[[int], None]] = None
) -> Path:
    """
    Write a (streamed) response body to disk.

    Args:
        response: Response, ideally requested with stream=True
        directory: Directory to write into (created if missing)
        file_name: Name of the output file; directory components are ignored
        observer: Optional callback receiving the progress in percent (0-100)

    Returns:
        Path: Path to the downloaded file

    Raises:
        requests.HTTPError: If the response carries an error status
        ValueError: If the file name is empty
    """
    response.raise_for_status()

    name = Path(file_name).name
    if not name:
        raise ValueError(f"Invalid file name: {file_name!r}")

    output_path = Path(directory) / name
    output_path.parent.mkdir(parents=True, exist_ok=True)

    total_size = int(response.headers.get('content-length', 0))
    bytes_downloaded = 0
    last_progress = -1

    with open(output_path, 'wb') as f:
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            f.write(chunk)
            bytes_downloaded += len(chunk)

            if observer and total_size:
                progress = min(100, bytes_downloaded * 100 // total_size)
                if progress != last_progress:
                    observer(progress)
                    last_progress = progress

    if observer and last_progress != 100:
        observer(100)

    logger.info(f"Downloaded {bytes_downloaded} bytes to {output_path}")
    return output_path
