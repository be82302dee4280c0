"""
Command line entry point.

Generates a deterministic stream of Nexmark events (Person, Auction, Bid) and
writes them as JSON lines to stdout or to per-kind Kafka topics. The same
offset always produces the same events, so a run can be resumed or split
across worker processes without coordination.
"""

import argparse
import logging
import multiprocessing
import sys
import time

from .config import load_config
from .errors import ConfigError, GenerationError
from .generator import EventGenerator
from .output import FORMATS, KafkaSink, StreamSink
from .scheduler import EventKind

logger = logging.getLogger("nexmark")

TYPES = ("all",) + tuple(kind.value for kind in EventKind)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="nexmark-generator", description="Nexmark event generator.")
    parser.add_argument("-t", "--type", choices=TYPES, default="all",
                        help="The type of events to generate (default: %(default)s)")
    parser.add_argument("-n", "--number", type=int, default=None,
                        help="The number of events to generate; forever if not given")
    parser.add_argument("--offset", type=int, default=0,
                        help="The start event index (default: %(default)s)")
    parser.add_argument("--step", type=int, default=1,
                        help="The index step for each iteration (default: %(default)s)")
    parser.add_argument("--format", choices=FORMATS, default="json",
                        help="Print format (default: %(default)s)")
    parser.add_argument("--no-wait", action="store_true",
                        help="Generate all events immediately instead of pacing to event time")
    parser.add_argument("--config", default=None,
                        help="YAML file with generator options; NEXMARK_* env vars override it")
    parser.add_argument("--rate", type=float, default=None,
                        help="Events per simulated second (overrides base_rate)")
    parser.add_argument("--kafka", default=None, metavar="BOOTSTRAP_SERVERS",
                        help="Send events to Kafka topics nexmark-<type> instead of stdout")
    parser.add_argument("--topic-prefix", default="nexmark",
                        help="Kafka topic prefix (default: %(default)s)")
    parser.add_argument("--workers", type=int, default=1,
                        help="Number of worker processes (default: %(default)s)")
    parser.add_argument("--log-level", default="INFO",
                        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
                        help="Log level for progress output on stderr (default: %(default)s)")
    args = parser.parse_args(argv)

    for name in ("offset", "number"):
        value = getattr(args, name)
        if value is not None and value < 0:
            parser.error(f"--{name} must be non-negative")
    for name in ("step", "workers"):
        if getattr(args, name) < 1:
            parser.error(f"--{name} must be positive")
    return args


def _make_sink(args):
    if args.kafka:
        return KafkaSink(args.kafka, topic_prefix=args.topic_prefix)
    return StreamSink(sys.stdout, fmt=args.format)


def _share(number, workers, worker_id):
    if number is None:
        return None
    return number // workers + (1 if worker_id < number % workers else 0)


def worker(worker_id, args, config, number=None, cancel=None):
    """Drive one stride of the index space into a sink. Returns an exit code."""
    kinds = None if args.type == "all" else [EventKind(args.type)]
    generator = EventGenerator(
        config,
        start=args.offset + worker_id * args.step,
        step=args.step * args.workers,
        kinds=kinds,
        paced=not args.no_wait,
        cancel=cancel,
    )
    events = generator.take(number) if number is not None else iter(generator)

    start_time = time.time()
    last_report_time = start_time
    last_report_total = 0
    sink = _make_sink(args)
    try:
        for event in events:
            sink.write(event)

            current_time = time.time()
            if current_time - last_report_time >= 1.0:
                rate = (sink.total - last_report_total) / (current_time - last_report_time)
                logger.info("Worker %d: %.0f events/sec, P:%d, A:%d, B:%d", worker_id, rate,
                            sink.counts[EventKind.PERSON], sink.counts[EventKind.AUCTION],
                            sink.counts[EventKind.BID])
                last_report_time = current_time
                last_report_total = sink.total
    except KeyboardInterrupt:
        pass
    except GenerationError as exc:
        logger.error("Worker %d stopped: %s", worker_id, exc)
        return 1
    finally:
        sink.close()
        logger.info("Worker %d sent %d events (resume at index %d)", worker_id, sink.total, generator.next_index)
    return 0


def _worker_process(worker_id, args, config, number):
    logging.basicConfig(level=args.log_level, stream=sys.stderr,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    sys.exit(worker(worker_id, args, config, number))


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level, stream=sys.stderr,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        config = load_config(args.config, base_rate=args.rate)
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    proportion = config.proportion
    logger.info("Starting Nexmark generator:")
    logger.info("  Output: %s", f"Kafka {args.kafka}" if args.kafka else f"stdout ({args.format})")
    logger.info("  Target rate: %s", "unpaced" if args.no_wait else
                (f"{config.base_rate:g} events/sec" if config.rate_shape is None else str(config.rate_shape)))
    logger.info("  Workers: %d", args.workers)
    logger.info("  Max events: %s", args.number if args.number is not None else "unlimited")
    logger.info("  Event proportions - Person:%d, Auction:%d, Bid:%d",
                proportion.person, proportion.auction, proportion.bid)

    if args.workers == 1:
        return worker(0, args, config, args.number)

    processes = []
    for i in range(args.workers):
        p = multiprocessing.Process(
            target=_worker_process,
            args=(i, args, config, _share(args.number, args.workers, i)),
        )
        processes.append(p)
        p.start()

    try:
        for p in processes:
            p.join()
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        for p in processes:
            p.terminate()
        for p in processes:
            p.join()
        return 0
    return max((p.exitcode or 0) for p in processes)
