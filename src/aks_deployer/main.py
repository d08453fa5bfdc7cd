"""CLI main entry point."""

import asyncio
import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from .azure import AzCliManagedClustersService
from .config import DeployerSettings, find_project_file, get_service, load_project, load_settings
from .environment import Environment
from .errors import DeployError
from .kubectl import KubeConfigManager, KubectlCli
from .shared.logging import configure_logging
from .shared.paths import ensure_dirs, get_env_file, get_log_file
from .target import (
    POSTPROVISION_EVENT,
    PREDEPLOY_EVENT,
    AksTarget,
    DockerContainerHelper,
    EnvironmentResourceManager,
    ProgressChannel,
    ProjectConfig,
    ServiceConfig,
    ServicePackageResult,
)

console = Console(stderr=True)

DEFAULT_ENVIRONMENT = "dev"


@dataclass
class Session:
    """Objects shared by the commands of one invocation."""

    project: ProjectConfig
    service: ServiceConfig
    env: Environment
    settings: DeployerSettings
    target: AksTarget


def _fail(error: DeployError) -> None:
    console.print(f"[red]Error:[/red] {escape(str(error))}")
    sys.exit(1)


def _warn(message: str) -> None:
    console.print(f"[yellow]{escape(message)}[/yellow]")


def _session(ctx: click.Context, service_name: str) -> Session:
    project_path = ctx.obj["project_path"]
    project = load_project(Path(project_path) if project_path else find_project_file())
    service = get_service(project, service_name)
    env_name = ctx.obj["environment"]
    env = Environment.load(env_name, get_env_file(project.path, env_name))
    settings = load_settings()

    target = AksTarget(
        env=env,
        kubectl=KubectlCli(cwd=project.path),
        credentials=AzCliManagedClustersService(),
        kube_config_manager=KubeConfigManager(),
        container_helper=DockerContainerHelper(env),
        resource_manager=EnvironmentResourceManager(env),
        poll_interval=settings.poll_interval,
        poll_timeout=settings.poll_timeout,
        rollout_timeout=settings.rollout_timeout,
        on_message=_warn,
    )
    target.initialize(service)
    return Session(project, service, env, settings, target)


def _check_tools(target: AksTarget) -> bool:
    ok = True
    for detector in target.required_external_tools():
        info = detector.detect()
        if info.available:
            click.echo(f"  ✓ {info.name}: {info.version or 'available'}", err=True)
        else:
            click.echo(f"  ✗ {info.name}: {info.error}", err=True)
            ok = False
    return ok


async def _print_progress(channel: ProgressChannel) -> None:
    async for label in channel:
        click.echo(f"  {label}...", err=True)


@click.group()
@click.option("-p", "--project", "project_path", type=click.Path(dir_okay=False), help="Project file path")
@click.option(
    "-e",
    "--environment",
    default=lambda: os.environ.get("AKS_DEPLOYER_ENV", DEFAULT_ENVIRONMENT),
    help="Environment name (default: $AKS_DEPLOYER_ENV or dev)",
)
@click.option("-v", "--verbose", count=True, help="Increase verbosity")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.option("--log-file", is_flag=True, help="Write JSON logs to ~/.aks-deployer/deploy.log")
@click.pass_context
def cli(
    ctx: click.Context,
    project_path: str | None,
    environment: str,
    verbose: int,
    json_output: bool,
    log_file: bool,
) -> None:
    """Deploy services to Azure Kubernetes Service."""
    ctx.ensure_object(dict)
    ctx.obj["project_path"] = project_path
    ctx.obj["environment"] = environment
    ctx.obj["json_output"] = json_output

    if log_file:
        ensure_dirs()
        configure_logging(verbose, log_file=get_log_file())
    else:
        configure_logging(verbose)


@cli.command()
@click.argument("service_name")
@click.pass_context
def check(ctx: click.Context, service_name: str) -> None:
    """Check the tools needed to deploy SERVICE_NAME."""
    try:
        session = _session(ctx, service_name)
    except DeployError as e:
        _fail(e)

    if not _check_tools(session.target):
        sys.exit(1)


@cli.command()
@click.argument("service_name")
@click.pass_context
def context(ctx: click.Context, service_name: str) -> None:
    """Configure the kubectl context for SERVICE_NAME's cluster.

    Runs the same steps as the post-provision hook: fetch cluster
    credentials, merge them into ~/.kube/config and ensure the namespace.
    """
    try:
        session = _session(ctx, service_name)
        asyncio.run(session.project.raise_event(POSTPROVISION_EVENT))
    except DeployError as e:
        _fail(e)

    click.echo(f"✓ Context ready for namespace '{session.service.namespace}'")


@cli.command()
@click.argument("service_name")
@click.option("--image", default=None, help="Local image to deploy (default: image from the project file)")
@click.option("--skip-checks", is_flag=True, help="Skip external tool detection")
@click.pass_context
def deploy(ctx: click.Context, service_name: str, image: str | None, skip_checks: bool) -> None:
    """Deploy SERVICE_NAME to its AKS cluster.

    Examples:

        # Deploy the api service using the image named in the project file
        aks-deployer deploy api

        # Deploy a specific local image to the prod environment
        aks-deployer -e prod deploy api --image todo-api:1.2.0
    """
    try:
        session = _session(ctx, service_name)
    except DeployError as e:
        _fail(e)

    if not skip_checks and not _check_tools(session.target):
        sys.exit(1)

    image = image or session.service.image
    package = ServicePackageResult(image=image) if image else None

    async def _deploy():
        await session.service.raise_event(PREDEPLOY_EVENT)
        target_resource = session.target.resource_manager.get_target_resource(
            session.env.get_subscription_id(), session.service
        )
        packaged = await session.target.package(session.service, package) if package else None

        channel = ProgressChannel(session.settings.progress_buffer)
        printer = asyncio.create_task(_print_progress(channel))
        try:
            return await session.target.deploy(session.service, packaged, target_resource, channel)
        finally:
            channel.close()
            await printer

    try:
        result = asyncio.run(_deploy())
    except DeployError as e:
        _fail(e)

    if ctx.obj["json_output"]:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    click.echo(f"\n✓ Deployed {service_name}")
    click.echo(f"  Resource: {result.target_resource_id}")
    if result.details:
        click.echo(f"  Deployment: {result.details.metadata.name}")
    if result.endpoints:
        click.echo("  Endpoints:")
        for endpoint in result.endpoints:
            click.echo(f"    - {endpoint}")
    else:
        click.echo("  No endpoints found")


@cli.command()
@click.argument("service_name")
@click.pass_context
def endpoints(ctx: click.Context, service_name: str) -> None:
    """List the endpoints of SERVICE_NAME."""
    try:
        session = _session(ctx, service_name)
        target_resource = session.target.resource_manager.get_target_resource(
            session.env.get_subscription_id(), session.service
        )
        found = asyncio.run(session.target.endpoints(session.service, target_resource))
    except DeployError as e:
        _fail(e)

    if ctx.obj["json_output"]:
        click.echo(json.dumps(found, indent=2))
        return
    for endpoint in found:
        click.echo(endpoint)


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
