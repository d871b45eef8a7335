"""
Command line interface.

``sdr2mqtt decode`` prints the frames found in capture files as JSON lines;
``sdr2mqtt watch`` decodes captures as they appear in a directory and
publishes them to an MQTT broker.
"""

import argparse
import json
import sys
import threading
from typing import List, Optional

from . import pipeline
from .config import BrokerConfig, DecoderConfig, set_config
from .logger import logger, set_log_level


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sdr2mqtt", description="Decode door sensor frames from .cu8 captures."
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="logging verbosity",
    )
    parser.add_argument("--config", help="YAML file with decoder settings")
    sub = parser.add_subparsers(dest="command", required=True)

    decode = sub.add_parser("decode", help="decode capture files and print frames")
    decode.add_argument("files", nargs="+", help="capture files")
    decode.add_argument(
        "--bits", action="store_true", help="print unique bit strings per file instead"
    )
    decode.add_argument(
        "--all", action="store_true", help="include frames with a mismatching sync word"
    )

    watch = sub.add_parser("watch", help="publish captures dropped into a directory")
    watch.add_argument("directory", help="directory to watch")
    watch.add_argument("--broker-config", help="YAML file with broker settings")
    return parser


def _decode(args: argparse.Namespace, config: DecoderConfig) -> int:
    if args.bits:
        results = pipeline.batch_extract(args.files, config)
        print(json.dumps(results, indent=2))
        # Unreadable files are missing from the mapping.
        failed = [path for path in args.files if path not in results]
        return 1 if failed else 0

    status = 0
    for path in args.files:
        try:
            frames = pipeline.decode_file(path, config)
        except OSError as e:
            logger.error(f"Could not read capture {path}: {e}")
            status = 1
            continue
        for frame in frames:
            if frame.sync_valid or args.all:
                record = frame.model_dump(mode="json", exclude={"expected_sync"})
                print(json.dumps({"file": path, **record}))
    return status


def _watch(args: argparse.Namespace, config: DecoderConfig) -> int:
    from .mqtt import MqttClient
    from .service import DirectoryWatcher, FileIngestor, FramePublisher

    broker = BrokerConfig.from_yaml(args.broker_config) if args.broker_config else BrokerConfig()
    client = MqttClient(broker)
    publisher = FramePublisher(client, broker=broker)
    ingestor = FileIngestor(
        lambda path: publisher.publish(pipeline.decode_file(path, config))
    )
    watcher = DirectoryWatcher(
        args.directory, ingestor, extension=broker.extension, interval=broker.poll_interval
    )

    stop = threading.Event()
    worker = threading.Thread(target=ingestor.run, args=(stop,), daemon=True)
    client.connect()
    worker.start()
    try:
        watcher.run(stop)
    except KeyboardInterrupt:
        logger.info("Stopping.")
    finally:
        stop.set()
        worker.join()
        client.close()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    set_log_level(args.log_level)

    config = DecoderConfig.from_yaml(args.config) if args.config else DecoderConfig()
    set_config(config)

    if args.command == "decode":
        return _decode(args, config)
    return _watch(args, config)


if __name__ == "__main__":
    sys.exit(main())
