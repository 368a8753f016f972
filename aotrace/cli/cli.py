import logging
import asyncio
import json
from dataclasses import dataclass, replace
import click
from aotrace.model import AoTraceError
from aotrace.graph import get_swap
from aotrace.settings import Settings, load_settings, build_index, build_resolver

# Main CLI to trace messages on AO.
# It utilizes the 'click' library.

@dataclass
class TraceContext:
    verbose:bool
    settings:Settings

def _echo_json(data):
    click.echo(json.dumps(data, indent=2))

@click.group()
@click.pass_context
@click.option("--config", "-c", "config_path", required=False, help="Path to an aotrace.toml file. By default, uses $AOTRACE_CONFIG or ./aotrace.toml if present.")
@click.option("--verbose", "-v", is_flag=True, help="Will print verbose messages.")
def cli(ctx:click.Context, config_path:str|None, verbose:bool):
    #print logs to console
    logging.basicConfig(level=logging.INFO if verbose else logging.WARNING)
    try:
        settings = load_settings(config_path)
    except AoTraceError as e:
        raise click.ClickException(str(e)) from e
    ctx.obj = TraceContext(verbose=verbose, settings=settings)

#===========================================================
# 'tree' command
#===========================================================
@cli.command()
@click.pass_context
@click.argument("msg_id")
@click.option("--action", "-a", "actions", multiple=True, help="Only follow replies with this 'Action' tag. Can be repeated.")
@click.option("--follow-pushed-for", is_flag=True, help="Start from the message the root was pushed for.")
@click.option("--dedupe", is_flag=True, help="Drop repeated replies.")
@click.option("--max-depth", type=int, required=False, help="Maximum depth of the tree.")
def tree(ctx:click.Context, msg_id:str, actions:tuple[str, ...], follow_pushed_for:bool, dedupe:bool, max_depth:int|None):
    trace_ctx:TraceContext = ctx.obj
    settings = trace_ctx.settings
    if max_depth is not None:
        settings = replace(settings, graph=replace(settings.graph, max_depth=max_depth))

    async def atree():
        resolver = build_resolver(settings)
        return await resolver.resolve(
            msg_id,
            actions=list(actions) or None,
            follow_pushed_for=follow_pushed_for,
            dedupe=dedupe)

    try:
        result = asyncio.run(atree())
    except AoTraceError as e:
        raise click.ClickException(str(e)) from e
    if result is None:
        raise click.ClickException(f"Could not resolve the message graph of '{msg_id}'.")
    if trace_ctx.verbose:
        click.echo(f"Resolved {result.size()} messages.", err=True)
    _echo_json(result.to_dict())

#===========================================================
# 'transfers' command
#===========================================================
@cli.command()
@click.pass_context
@click.argument("msg_id")
def transfers(ctx:click.Context, msg_id:str):
    trace_ctx:TraceContext = ctx.obj

    async def atransfers():
        resolver = build_resolver(trace_ctx.settings)
        return await get_swap(resolver, msg_id)

    swap = asyncio.run(atransfers())
    if swap is None:
        raise click.ClickException(f"Could not resolve the transfers of '{msg_id}'.")
    _echo_json(swap.to_dict())

#===========================================================
# 'message' command
#===========================================================
@cli.command()
@click.pass_context
@click.argument("msg_id")
def message(ctx:click.Context, msg_id:str):
    trace_ctx:TraceContext = ctx.obj

    async def amessage():
        index = build_index(trace_ctx.settings)
        return await index.require_message(msg_id)

    try:
        result = asyncio.run(amessage())
    except AoTraceError as e:
        raise click.ClickException(str(e)) from e
    _echo_json(result.to_dict())

if __name__ == '__main__':
    cli(None)
