import argparse
import hashlib
import io
import os
import urllib.request
import zipfile
from typing import List, Optional

# Fetch remote corpora (CSV document tables, text8). Files are written under wordembed/data/.

TEXT8_URL = "http://mattmahoney.net/dc/text8.zip"
DATA_DIR = os.path.join(os.path.dirname(__file__), "data")
DEFAULT_PATH = os.path.join(DATA_DIR, "text8.txt")


def cache_path_for(url: str, data_dir: str = DATA_DIR) -> str:
    """Local file path a URL is cached at: <data_dir>/<sha1 prefix>-<basename>.

    A trailing .zip is dropped since archives are stored extracted.
    """
    name = os.path.basename(url.split("?", 1)[0]) or "download"
    if name.endswith(".zip"):
        name = name[: -len(".zip")]
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:10]
    return os.path.join(data_dir, f"{digest}-{name}")


def fetch_url(
    url: str,
    save_path: Optional[str] = None,
    max_chars: Optional[int] = None,
    timeout: float = 30,
    overwrite: bool = False,
) -> str:
    """Download url to save_path; zip archives are unpacked and their first member written.

    Args:
        url: Remote file URL.
        save_path: Where to write the text. Defaults to cache_path_for(url).
        max_chars: If set, only write the first max_chars characters. Defaults to None.
        timeout: Socket timeout in seconds. Defaults to 30.
        overwrite: Download again even if save_path exists. Defaults to False.

    Returns:
        The path written (save_path).

    Raises:
        RuntimeError: If the zip contains no files.
    """
    if save_path is None:
        save_path = cache_path_for(url)
    if os.path.isfile(save_path) and not overwrite:
        return save_path
    req = urllib.request.Request(url, headers={"User-Agent": "wordembed-download/1.0"})
    with urllib.request.urlopen(req, timeout=timeout) as resp:
        data = resp.read()
    if zipfile.is_zipfile(io.BytesIO(data)):
        with zipfile.ZipFile(io.BytesIO(data), "r") as z:
            names = z.namelist()
            if not names:
                raise RuntimeError(f"Empty zip: {url}")
            data = z.read(names[0])
    text = data.decode("utf-8", errors="replace")
    if max_chars is not None:
        text = text[:max_chars]
    os.makedirs(os.path.dirname(save_path) or ".", exist_ok=True)
    with open(save_path, "w", encoding="utf-8") as f:
        f.write(text)
    return save_path


def download_text8(save_path: str = DEFAULT_PATH, max_chars: Optional[int] = None) -> str:
    """Download the text8 corpus (one line of lowercase Wikipedia text) to save_path."""
    return fetch_url(TEXT8_URL, save_path, max_chars=max_chars)


def main(argv: Optional[List[str]] = None) -> None:
    """Fetch a URL (text8 by default) and report the size written."""
    ap = argparse.ArgumentParser(description="Download a corpus file")
    ap.add_argument("url", nargs="?", default=TEXT8_URL)
    ap.add_argument("--out", type=str, default=None, help="Defaults to the cache path")
    # Optional: 5MB slice for quick runs
    ap.add_argument("--max-chars", type=int, default=None)
    ap.add_argument("--overwrite", action="store_true")
    args = ap.parse_args(argv)

    path = args.out
    if path is None and args.url == TEXT8_URL:
        path = DEFAULT_PATH
    out = fetch_url(args.url, path, max_chars=args.max_chars, overwrite=args.overwrite)
    print(f"Wrote {os.path.getsize(out) // 1024} KB to {out}")


if __name__ == "__main__":
    main()
