import json
import logging
import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import get_settings
from .domain.errors import FetcherError
from .fetcher import UniswapFetcher

console = Console()


def _parse_pair(raw: str) -> tuple[str, str, int]:
    try:
        token0, token1, fee = raw.split(":")
        return token0, token1, int(fee)
    except ValueError:
        raise click.BadParameter(f"expected TOKEN0:TOKEN1:FEE, got {raw!r}")


def _emit(obj) -> None:
    console.print_json(json.dumps(obj, default=sorted))


@click.group()
@click.option("--rpc", envvar="UNISWAP_FETCHER_RPC_URL", default=None, help="RPC endpoint URL")
@click.option("-v", "--verbose", count=True, help="-v for INFO, -vv for DEBUG")
@click.pass_context
def cli(ctx: click.Context, rpc, verbose):
    """uniswap-fetcher: Uniswap V3 pool events, signals and price ratios over JSON-RPC."""
    level = logging.WARNING if verbose == 0 else logging.INFO if verbose == 1 else logging.DEBUG
    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]",
                        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)])
    try:
        ctx.obj = UniswapFetcher(rpc, settings=get_settings())
    except FetcherError as e:
        raise click.ClickException(str(e))


def _run(fn, *args):
    try:
        return fn(*args)
    except FetcherError as e:
        raise click.ClickException(f"{type(e).__name__}: {e}")


@cli.command("block-range")
@click.argument("start_ts", type=int)
@click.argument("end_ts", type=int)
@click.pass_obj
def block_range_cmd(fetcher: UniswapFetcher, start_ts, end_ts):
    """Blocks whose timestamps bound [START_TS, END_TS]."""
    fb, tb = _run(fetcher.get_block_number_range, start_ts, end_ts)
    console.print(f"[bold]blocks[/]: {fb:,} → {tb:,}")


@cli.command("timestamp")
@click.argument("block", type=int)
@click.pass_obj
def timestamp_cmd(fetcher: UniswapFetcher, block):
    """Unix timestamp of BLOCK."""
    console.print(_run(fetcher.get_timestamp_by_block_number, block))


@cli.command("pool-events")
@click.option("--pool", "pools", multiple=True, help="Pool address; repeat for several")
@click.option("--pair", "pairs", multiple=True, help="TOKEN0:TOKEN1:FEE; repeat for several")
@click.option("--from-block", type=int, default=None)
@click.option("--to-block", type=int, default=None)
@click.option("--start-ts", type=int, default=None, help="Use with --end-ts instead of block bounds (pairs only)")
@click.option("--end-ts", type=int, default=None)
@click.option("--parquet-out", type=click.Path(dir_okay=False), default=None, help="Also write events to Parquet")
@click.pass_obj
def pool_events_cmd(fetcher: UniswapFetcher, pools, pairs, from_block, to_block, start_ts, end_ts, parquet_out):
    """Swap/Mint/Burn/Collect events for pools (by address or token pair)."""
    if bool(pools) == bool(pairs):
        raise click.UsageError("Pass either --pool or --pair (not both)")
    token_pairs = [_parse_pair(p) for p in pairs]

    if start_ts is not None or end_ts is not None:
        if start_ts is None or end_ts is None or not token_pairs:
            raise click.UsageError("--start-ts/--end-ts need each other and --pair")
        result = _run(fetcher.fetch_pool_data, token_pairs, start_ts, end_ts)
    else:
        if from_block is None or to_block is None:
            raise click.UsageError("Pass --from-block and --to-block (or --start-ts/--end-ts)")
        if token_pairs:
            result = _run(fetcher.get_pool_events_by_token_pairs, token_pairs, from_block, to_block)
        else:
            result = _run(fetcher.get_pool_events_by_pool_addresses, list(pools), from_block, to_block)

    if parquet_out:
        from .adapters.parquet_sink import write_events_parquet
        n = write_events_parquet(parquet_out, result["data"])
        console.print(f"[bold]wrote[/] {n} events → {parquet_out}")
    console.print(f"[bold]done[/]: {len(result['data'])} events • hash {result['overall_data_hash'][:16]}…")
    if not parquet_out:
        _emit(result)


@cli.command("recent-events")
@click.argument("pool")
@click.argument("start_ts", type=int)
@click.pass_obj
def recent_events_cmd(fetcher: UniswapFetcher, pool, start_ts):
    """Events for POOL from START_TS through the chain head."""
    _emit(_run(fetcher.get_recent_pool_events, pool, start_ts))


@cli.command("signals")
@click.argument("pool")
@click.argument("timestamp", type=int)
@click.option("--interval", type=int, default=300, show_default=True, help="Window length in blocks")
@click.pass_obj
def signals_cmd(fetcher: UniswapFetcher, pool, timestamp, interval):
    """Mean price, volume and net liquidity for POOL over a block window."""
    _emit(_run(fetcher.get_signals_by_pool_address, pool, timestamp, interval))


@cli.command("price-ratios")
@click.argument("pool")
@click.argument("start_ts", type=int)
@click.argument("end_ts", type=int)
@click.option("--interval", type=int, default=300, show_default=True, help="Bucket width in seconds")
@click.pass_obj
def price_ratios_cmd(fetcher: UniswapFetcher, pool, start_ts, end_ts, interval):
    """Bucketed, forward-filled price ratios for POOL."""
    series = _run(fetcher.get_pool_price_ratios, pool, start_ts, end_ts, interval)
    table = Table("timestamp", "price_ratio")
    for row in series:
        table.add_row(str(row["timestamp"]), row["price_ratio"])
    console.print(table)


@cli.command("pool-created")
@click.argument("start_ts", type=int)
@click.argument("end_ts", type=int)
@click.pass_obj
def pool_created_cmd(fetcher: UniswapFetcher, start_ts, end_ts):
    """PoolCreated events with token name/symbol/decimals."""
    _emit(_run(fetcher.get_pool_created_events_between_two_timestamps, start_ts, end_ts))


@cli.command("tokens")
@click.argument("start_ts", type=int)
@click.argument("end_ts", type=int)
@click.pass_obj
def tokens_cmd(fetcher: UniswapFetcher, start_ts, end_ts):
    """Every token appearing in a pool created between the timestamps."""
    _emit(_run(fetcher.get_all_tokens, start_ts, end_ts))


@cli.command("token-pairs")
@click.argument("start_ts", type=int)
@click.argument("end_ts", type=int)
@click.pass_obj
def token_pairs_cmd(fetcher: UniswapFetcher, start_ts, end_ts):
    """(token0, token1, fee, pool) for pools created between the timestamps."""
    _emit(_run(fetcher.get_all_token_pairs, start_ts, end_ts))


if __name__ == "__main__":
    cli()
