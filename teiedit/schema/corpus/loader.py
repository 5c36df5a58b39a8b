"""Acquisition of grammar corpora from disk or the TEI Consortium."""
from pathlib import Path
from typing import Any, Dict, Optional, Union
import json
import logging

import requests
import yaml

from ..models.types import SchemaCorpusError

logger = logging.getLogger(__name__)


def load_corpus(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a corpus file.

    Args:
        path: JSON (.json) or YAML (.yml/.yaml) corpus

    Returns:
        Dict[str, Any]: Parsed corpus
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Corpus file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            if path.suffix == ".json":
                corpus = json.load(f)
            elif path.suffix in (".yml", ".yaml"):
                corpus = yaml.safe_load(f)
            else:
                raise ValueError(f"Unsupported corpus file type: {path.name}")
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise SchemaCorpusError(f"Cannot parse corpus: {e}", path) from e

    if not isinstance(corpus, dict):
        raise SchemaCorpusError("Corpus root must be a mapping", path)

    logger.info(f"Loaded corpus {corpus.get('title', path.name)} ({corpus.get('date', 'undated')})")
    return corpus


def download_corpus(
    url: str,
    destination: Union[str, Path],
    timeout: Optional[float] = 60.0
) -> Path:
    """Fetch a corpus over HTTP and store it at ``destination``."""
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Downloading corpus from {url}...")
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()

    destination.write_bytes(response.content)
    logger.info(f"Saved to {destination}")
    return destination


def fetch_corpus(
    path: Union[str, Path],
    url: str,
    force_download: bool = False
) -> Dict[str, Any]:
    """Use the local copy when present, downloading it otherwise."""
    path = Path(path)
    if force_download or not path.exists():
        download_corpus(url, path)
    else:
        logger.info(f"Loading from {path}...")
    return load_corpus(path)
