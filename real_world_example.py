"""
real_world_example.py
---------------------
Eager and lazy handles on a real workload:
- Downloads run as EAGER handles: each one starts the moment it is created,
    and an `asyncio.Semaphore` caps how many talk to the server at once.
- Image processing runs as LAZY handles backed by a process pool. They are
    all defined first, then started together in one batch with `await_all`,
    so the pool gets the whole batch at once instead of one image at a time.

What this file demonstrates:
- Passing an executor to `create()` so a CPU-bound function runs in worker
    processes while the handle still lives on the event loop.
- Keeping network I/O (httpx + aiofiles) and CPU work (Pillow) in separate
    handles, composed by the caller.

Notes:
- Adjust DOWNLOAD_LIMIT and CPU_WORKERS for your environment.
- Cancelling a processing handle discards its result, but a worker process
    that already picked up the image finishes it anyway.
"""

import asyncio
import os
from concurrent.futures import Executor, ProcessPoolExecutor
from functools import partial
from pathlib import Path

import aiofiles
import httpx
from PIL import Image, ImageFilter

from deferred import Start, await_all, create
from log import configure_logging, get_logger
from timing import Timed, measure

logger = get_logger(__name__)

DOWNLOAD_LIMIT = 4
CPU_WORKERS = max(1, (os.cpu_count() or 1) - 2)
EDGE_THRESHOLD = 30


IMAGE_URLS = [
    "https://images.unsplash.com/photo-1516117172878-fd2c41f4a759?w=1920&h=1080&fit=crop",
    "https://images.unsplash.com/photo-1532009324734-20a7a5813719?w=1920&h=1080&fit=crop",
    "https://images.unsplash.com/photo-1524429656589-6633a470097c?w=1920&h=1080&fit=crop",
    "https://images.unsplash.com/photo-1530224264768-7ff8c1789d79?w=1920&h=1080&fit=crop",
    "https://images.unsplash.com/photo-1564135624576-c5c88640f235?w=1920&h=1080&fit=crop",
    "https://images.unsplash.com/photo-1541698444083-023c97d3f4b6?w=1920&h=1080&fit=crop",
]


ORIGINAL_DIR = Path("original_images")
PROCESSED_DIR = Path("processed_images")


async def download_single_image(
    client: httpx.AsyncClient,
    url: str,
    img_num: int,
    semaphore: asyncio.Semaphore,
    dest_dir: Path = ORIGINAL_DIR,
) -> Path:
    async with semaphore:
        logger.info("Downloading %s", url)
        response = await client.get(url, timeout=10, follow_redirects=True)
        response.raise_for_status()

        download_path = dest_dir / f"image_{img_num}.jpg"
        async with aiofiles.open(download_path, "wb") as f:
            async for chunk in response.aiter_bytes(chunk_size=8192):
                await f.write(chunk)

        logger.info("Saved %s", download_path)
        return download_path


async def download_images(
    urls: list,
    dest_dir: Path = ORIGINAL_DIR,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[Path]:
    semaphore = asyncio.Semaphore(DOWNLOAD_LIMIT)
    async with httpx.AsyncClient(transport=transport) as client:
        # Each handle is already running (or queued on the semaphore) by the
        # time the next one is created.
        handles = [
            create(
                Start.EAGER,
                partial(download_single_image, client, url, img_num, semaphore, dest_dir),
                name=f"download-{img_num}",
            )
            for img_num, url in enumerate(urls, start=1)
        ]
        return await await_all(*handles)


def process_single_image(orig_path: Path, dest_dir: Path = PROCESSED_DIR) -> Path:
    """Turn a photo into a black and white edge map.

    Runs in a worker process, so it must stay a plain module-level function.
    """
    save_path = dest_dir / orig_path.name

    with Image.open(orig_path) as img:
        edges = img.convert("L").filter(ImageFilter.FIND_EDGES)
        mask = edges.point(lambda value: 255 if value > EDGE_THRESHOLD else 0)
        mask.convert("RGB").save(save_path)

    return save_path


async def process_images(
    orig_paths: list[Path],
    executor: Executor,
    dest_dir: Path = PROCESSED_DIR,
) -> list[Path]:
    handles = [
        create(
            Start.LAZY,
            partial(process_single_image, orig_path, dest_dir),
            name=f"process-{orig_path.stem}",
            executor=executor,
        )
        for orig_path in orig_paths
    ]
    # Nothing has been submitted to the pool yet; await_all starts the whole
    # batch before waiting on the first image.
    processed_paths = await await_all(*handles)
    for path in processed_paths:
        logger.info("Processed %s", path)
    return processed_paths


def summarize(downloaded: Timed, processed: Timed) -> list[str]:
    total = downloaded.elapsed + processed.elapsed
    return [
        f"Downloaded {len(downloaded.value)} images in {downloaded.elapsed:.2f}s ({downloaded.elapsed / total:.0%} of total)",
        f"Processed {len(processed.value)} images in {processed.elapsed:.2f}s ({processed.elapsed / total:.0%} of total)",
        f"Total execution time: {total:.2f}s",
    ]


async def main():
    ORIGINAL_DIR.mkdir(parents=True, exist_ok=True)
    PROCESSED_DIR.mkdir(parents=True, exist_ok=True)

    downloaded = await measure(download_images(IMAGE_URLS))

    with ProcessPoolExecutor(max_workers=CPU_WORKERS) as executor:
        processed = await measure(process_images(downloaded.value, executor))

    print("\n".join(summarize(downloaded, processed)))


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())
