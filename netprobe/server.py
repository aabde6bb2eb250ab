"""netprobe FastMCP server.

Thin wrapper exposing the probe pipeline as a single MCP tool. All work is
delegated to the runner and sink in services/.
"""

import logging

from fastmcp import FastMCP

from netprobe.dependencies import Dependencies
from netprobe.models import InvalidOutputModeError, OutputMode, ProbeSkipped
from netprobe.services.sink import SinkError, format_table

logger = logging.getLogger(__name__)


async def run_diagnostics(
    deps: Dependencies,
    hosts: list[str],
    mode: str = "Host",
    path: str | None = None,
    file_name: str | None = None,
) -> str:
    """Probe hosts and render the results as a text report.

    File modes never open the written file; the report names it instead.
    """
    try:
        output = deps.config.settings.output_config(mode, path, file_name)
    except InvalidOutputModeError as e:
        return f"Error: {e}"

    outcomes = await deps.runner.run(hosts)
    results = deps.runner.results(outcomes)

    try:
        deps.sink(output, open_result=False).write(results)
    except SinkError as e:
        logger.error("%s", e)
        return f"Error: {e}"

    lines = []
    if output.mode is OutputMode.HOST:
        lines.append(format_table(results).rstrip() or "No results.")
    else:
        lines.append(f"Wrote {len(results)} result(s) to {output.destination}")

    skipped = [outcome for outcome in outcomes if isinstance(outcome, ProbeSkipped)]
    if skipped:
        lines.append("")
        lines.extend(
            f"[FAILED] {outcome.host}: {outcome.reason.value}: {outcome.error}"
            for outcome in skipped
        )
    return "\n".join(lines)


def create_server(deps: Dependencies | None = None) -> FastMCP:
    """Create the MCP server.

    Args:
        deps: Dependencies to use (default: built from the environment)
    """
    deps = deps or Dependencies.create()
    server = FastMCP("netprobe")

    async def netprobe(
        hosts: list[str],
        mode: str = "Host",
        path: str | None = None,
        file_name: str | None = None,
    ) -> str:
        """Run connectivity diagnostics on remote hosts over SSH.

        Each host pings and resolves one.one.one.one. Hosts that cannot be
        reached are listed as failed and do not stop the others.

        Args:
            hosts: Host names, addresses or ssh config aliases
            mode: Host (return a table), CSV or Text (append to a file)
            path: Output directory for file modes
            file_name: Output base file name for file modes
        """
        return await run_diagnostics(deps, hosts, mode, path, file_name)

    server.tool()(netprobe)
    logger.debug("Registered netprobe tool")
    return server
