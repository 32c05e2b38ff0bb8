"""Command line interface for shipping logs to S3."""
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

import typer

from .env import load_env
from .factory import create_stream_logger, load_config
from .naming import object_key

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)

app = typer.Typer(help="Buffered, rotating log shipper for S3")


@app.command()
def pipe(
    config_path: Optional[str] = typer.Option(None, "--config", help="YAML config file"),
    bucket: Optional[str] = typer.Option(None, "--bucket"),
    folder: Optional[str] = typer.Option(None, "--folder"),
    compress: bool = typer.Option(False, "--compress", help="gzip uploaded objects"),
    save_json: bool = typer.Option(False, "--json", help="Store lines as a JSON array"),
    tee: bool = typer.Option(False, "--tee", help="Echo every line to stdout"),
) -> None:
    """Ship stdin line by line until EOF."""
    load_env()
    # flags only switch features on; without them the configured value stays
    stream = create_stream_logger(
        config_path,
        bucket=bucket,
        folder=folder,
        compress=compress or None,
        save_logs_in_json=save_json or None,
    )
    stream.add_error_listener(lambda exc: logger.error("Upload failed: %s", exc))
    logger.info("Shipping stdin to s3://%s/%s", stream.config.bucket, stream.object_key)
    lines = 0
    try:
        for line in sys.stdin:
            stream.write(line)
            lines += 1
            if tee:
                typer.echo(line, nl=False)
    except KeyboardInterrupt:
        logger.info("Interrupted; flushing buffered lines")
    succeeded = stream.finalize().result()
    logger.info("Shipped %s line(s); final flush %s", lines, "ok" if succeeded else "failed")
    if not succeeded:
        raise typer.Exit(code=1)


@app.command()
def key(
    config_path: Optional[str] = typer.Option(None, "--config", help="YAML config file"),
    bucket: Optional[str] = typer.Option(None, "--bucket"),
    folder: Optional[str] = typer.Option(None, "--folder"),
    at: Optional[str] = typer.Option(None, "--at", help="ISO-8601 timestamp, defaults to now"),
) -> None:
    """Print the object key the configuration produces."""
    load_env()
    config = load_config(config_path, bucket=bucket, folder=folder)
    created_at = datetime.fromisoformat(at) if at else datetime.now(timezone.utc)
    typer.echo(object_key(created_at, config.folder, config.resolved_name_format()))


if __name__ == "__main__":
    app()
