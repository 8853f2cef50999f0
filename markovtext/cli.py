"""Command-line interface for training and generation."""

import argparse
import sys
from dataclasses import asdict
from pathlib import Path

from markovtext.config import settings
from markovtext.services.chain import MarkovConfig
from markovtext.services.corpus import load_text_corpus, load_text_dir
from markovtext.services.errors import MarkovError
from markovtext.services.markov import MarkovModel
from markovtext.utils.logger import setup_logger

logger = setup_logger("markovtext")

TRUNCATION_MARKER = "..."


def load_model(args) -> MarkovModel:
    """Load from --model path or --embedded package:path."""
    if args.embedded:
        package, _, resource_path = args.embedded.partition(":")
        if not resource_path:
            raise ValueError("--embedded expects package:path")
        return MarkovModel.from_embedded(package, resource_path, seed=args.seed)
    return MarkovModel.from_file(args.model, seed=args.seed)


def train(args):
    """Train a model on a corpus file or directory and save it."""
    text = load_text_dir(args.dir) if args.dir else load_text_corpus(args.input)

    config = MarkovConfig(
        order=args.order,
        max_repeat=args.max_repeat,
        min_sentence_len=args.min_sentence_len,
        max_sentence_len=args.max_sentence_len,
        paragraph_break=args.paragraph_break,
        stop_tokens=args.stop_tokens,
    )
    model = MarkovModel(config)
    model.build(text, chunk_size=args.chunk_size, max_workers=args.workers)
    stats = model.get_stats()
    logger.info(f"[Markov] Trained: {stats.prefixes} prefixes, {stats.transitions} transitions")

    path = model.save_to_file(args.output)
    print(f"Model trained and saved to {path}")


def generate(args):
    """Print generated text followed by the truncation marker."""
    model = load_model(args)
    print(model.generate(args.words), TRUNCATION_MARKER)


def stats(args):
    """Print chain statistics for a saved model."""
    model = load_model(args)
    for key, value in asdict(model.get_stats()).items():
        print(f"{key}: {value}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="markovtext",
        description="Train and run word-level Markov text models",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Training arguments
    train_parser = subparsers.add_parser("train", help="Train a model and save it")
    source = train_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", "-i", type=Path, help="Corpus text file")
    source.add_argument("--dir", "-d", type=Path, help="Directory of .txt corpus files")
    train_parser.add_argument("--output", "-o", type=Path, required=True, help="Model file to write")
    train_parser.add_argument("--order", type=int, default=settings.MARKOV_ORDER, help="Prefix length in words")
    train_parser.add_argument("--max-repeat", type=int, default=settings.MARKOV_MAX_REPEAT)
    train_parser.add_argument("--min-sentence-len", type=int, default=settings.MARKOV_MIN_SENTENCE_LEN)
    train_parser.add_argument("--max-sentence-len", type=int, default=settings.MARKOV_MAX_SENTENCE_LEN)
    train_parser.add_argument("--paragraph-break", type=int, default=settings.MARKOV_PARAGRAPH_BREAK,
                              help="Sentences per paragraph")
    train_parser.add_argument("--stop-tokens", default=settings.MARKOV_STOP_TOKENS)
    train_parser.add_argument("--chunk-size", type=int, default=settings.TRAIN_CHUNK_SIZE,
                              help="Words per training chunk")
    train_parser.add_argument("--workers", type=int, default=settings.TRAIN_MAX_WORKERS,
                              help="Training threads (default: executor default)")
    train_parser.set_defaults(func=train)

    # Generation / inspection arguments
    for name, func, help_text in (
        ("generate", generate, "Generate text from a saved model"),
        ("stats", stats, "Show chain statistics of a saved model"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        model_source = sub.add_mutually_exclusive_group(required=True)
        model_source.add_argument("--model", "-m", type=Path, help="Model file")
        model_source.add_argument("--embedded", "-e", help="Bundled model as package:path")
        sub.add_argument("--seed", type=int, default=settings.RANDOM_SEED, help="Random seed")
        sub.set_defaults(func=func)
        if name == "generate":
            sub.add_argument("--words", "-n", type=int, default=settings.DEFAULT_WORD_COUNT,
                             help="Number of words to generate")

    return parser


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    try:
        args.func(args)
    except (MarkovError, OSError, ValueError) as e:
        logger.error(f"[ERR] {args.command} failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
