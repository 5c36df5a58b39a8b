# teiedit/schema/corpus/__init__.py
from .ingest import CorpusIndex, ElementDef, MacroDef, Particle, ParticleKind, ingest_corpus
from .loader import download_corpus, fetch_corpus, load_corpus

__all__ = [
    'CorpusIndex',
    'ElementDef',
    'MacroDef',
    'Particle',
    'ParticleKind',
    'download_corpus',
    'fetch_corpus',
    'ingest_corpus',
    'load_corpus',
]
