"""list 命令：列出配置、配置文件中的提供商以及内置提供商"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Set, Union

from ..config import ConfigFile
from ..errors import ExitCode, command_boundary, create_success_result
from ..providers import BUILTIN_PROVIDERS, get_builtin_provider
from ..types import CommandResult
from ..utils import unique
from .common import load_config

SUBCOMMANDS = ("config", "provider")

SOURCE_LABELS = {
    "config": "Configuration file",
    "builtin": "Built-in",
    "both": "Configuration + Built-in",
}


class ListArgumentError(ValueError):
    pass


@dataclass
class ListOptions:
    subcommand: Optional[str] = None
    provider: Optional[str] = None
    verbose: bool = False
    all: bool = False
    tree: bool = False
    short_form: bool = False
    builtin: bool = False


def parse_list_args(args: Sequence[str], verbose: bool = False, all_: bool = False, tree: bool = False,
                    short_form: bool = False, builtin: bool = False) -> ListOptions:
    """解析位置参数并检查选项组合，非法时抛出 ListArgumentError"""
    options = ListOptions(verbose=verbose, all=all_, tree=tree, short_form=short_form, builtin=builtin)

    for arg in args:
        if not arg:
            continue
        if arg.startswith("-"):
            raise ListArgumentError(f"Unknown option: {arg}. Use --help for usage information.")

        if options.subcommand is None:
            # -p / -f 之后的第一个参数是提供商名称
            if options.short_form or options.builtin:
                options.subcommand = "provider"
                options.provider = arg
            else:
                options.subcommand = arg
        elif options.subcommand == "provider" and options.provider is None:
            options.provider = arg
        else:
            raise ListArgumentError(f"Too many arguments. Unexpected argument: {arg}")

    if options.subcommand is None and (options.short_form or options.builtin):
        options.subcommand = "provider"

    if options.subcommand and options.subcommand not in SUBCOMMANDS and not options.builtin:
        raise ListArgumentError(
            f"Unknown subcommand: {options.subcommand}. Available subcommands: {', '.join(SUBCOMMANDS)}"
        )

    if options.all and options.builtin:
        raise ListArgumentError("--all flag cannot be used with -f (built-in providers) flag")
    if options.tree and options.builtin:
        raise ListArgumentError("--tree flag cannot be used with -f (built-in providers) flag")
    if options.all and options.subcommand != "provider":
        raise ListArgumentError("--all flag can only be used with provider subcommand")
    if options.tree and options.subcommand != "provider":
        raise ListArgumentError("--tree flag can only be used with provider subcommand")
    if options.provider and options.subcommand != "provider":
        raise ListArgumentError("Provider name can only be specified with provider subcommand")

    return options


def _join(lines: List[str]) -> str:
    return "\n".join(lines).strip("\n")


def list_configurations(config: ConfigFile, verbose: bool = False) -> CommandResult:
    names = config.configuration_names()
    if not names:
        return create_success_result(
            "No configurations found",
            "Add configurations to your configuration file to get started.",
        )

    default = config.default_name()
    lines = []
    for entry in config.all_entries():
        marker = " (default)" if entry.name == default else ""
        if verbose:
            lines.append(f"  {entry.name}{marker} - Provider: {entry.provider}, Model: {entry.model}")
        else:
            lines.append(f"  {entry.name}{marker}")
    return create_success_result("Available configurations:", _join(lines))


def list_builtin_providers(provider: Optional[str] = None, verbose: bool = False) -> CommandResult:
    if provider:
        builtin = get_builtin_provider(provider)
        if builtin is None:
            return CommandResult(
                success=False,
                message=f"Built-in provider '{provider}' not found",
                details=f"Available built-in providers: {', '.join(BUILTIN_PROVIDERS)}",
                exit_code=ExitCode.GENERAL_ERROR,
            )

        lines = [f"  {model}" for model in builtin.models]
        if verbose:
            lines.extend([
                "",
                "Provider details:",
                f"  Name: {builtin.display_name}",
                f"  Base URL: {builtin.base_url}",
                f"  Total models: {len(builtin.models)}",
            ])
        return create_success_result(
            f"Models for built-in provider '{builtin.key}' ({builtin.display_name}):",
            _join(lines),
        )

    lines = []
    for builtin in BUILTIN_PROVIDERS.values():
        if verbose:
            lines.append(f"  {builtin.key} ({builtin.display_name}) - {len(builtin.models)} models")
            lines.append(f"    Base URL: {builtin.base_url}")
        else:
            lines.append(f"  {builtin.key} ({builtin.display_name})")
    if not verbose:
        lines.extend(["", "Use 'qcr list -f [provider]' to see models for a specific provider."])
    return create_success_result("Available built-in providers:", _join(lines))


@dataclass
class _MergedProvider:
    models: Set[str]
    base_url: str
    source: str


def _merge_with_builtins(config: ConfigFile) -> Dict[str, _MergedProvider]:
    """配置文件提供商与内置提供商按小写名称合并"""
    merged: Dict[str, _MergedProvider] = {}
    for provider in config.providers:
        key = provider.provider.lower()
        if key not in merged:
            merged[key] = _MergedProvider(models=set(), base_url=provider.env.base_url or "", source="config")
        merged[key].models.update(provider.model_names())

    for key, builtin in BUILTIN_PROVIDERS.items():
        if key in merged:
            merged[key].source = "both"
        else:
            merged[key] = _MergedProvider(models=set(), base_url=builtin.base_url, source="builtin")
        merged[key].models.update(builtin.models)
    return merged


def _list_provider_models(config: ConfigFile, name: str, verbose: bool, comprehensive: bool) -> CommandResult:
    wanted = name.lower()
    provider = next((p for p in config.providers if p.provider.lower() == wanted), None)

    if comprehensive:
        builtin = get_builtin_provider(name)
        if provider is None and builtin is None:
            available = unique(config.provider_names() + list(BUILTIN_PROVIDERS))
            return CommandResult(
                success=False,
                message=f"Provider '{name}' not found",
                details=f"Available providers: {', '.join(available)}",
                exit_code=ExitCode.GENERAL_ERROR,
            )

        models: Set[str] = set()
        base_url = ""
        if provider is not None:
            models.update(provider.model_names())
            base_url = provider.env.base_url or ""
        if builtin is not None:
            models.update(builtin.models)
            base_url = base_url or builtin.base_url

        sorted_models = sorted(models)
        lines = [f"  {model}" for model in sorted_models]
        if verbose:
            lines.extend(["", "Provider details:", f"  Base URL: {base_url}", f"  Total models: {len(sorted_models)}"])
            if provider is not None and builtin is not None:
                lines.append("  Sources: Configuration file + Built-in definitions")
            elif provider is not None:
                lines.append("  Source: Configuration file only")
            else:
                lines.append("  Source: Built-in definitions only")
        return create_success_result(f"All available models for provider '{name}':", _join(lines))

    if provider is None:
        return CommandResult(
            success=False,
            message=f"Provider '{name}' not found",
            details=f"Available providers: {', '.join(config.provider_names())}",
            exit_code=ExitCode.GENERAL_ERROR,
        )

    models = provider.model_names()
    lines = [f"  {model}" for model in models]
    if verbose:
        lines.extend(["", "Provider details:", f"  Base URL: {provider.env.base_url}", f"  Total models: {len(models)}"])
    return create_success_result(f"Models for provider '{provider.provider}':", _join(lines))


def list_providers(config: ConfigFile, provider: Optional[str] = None, verbose: bool = False,
                   all_: bool = False, tree: bool = False) -> CommandResult:
    """列出配置文件中的提供商；--all 时合并内置提供商"""
    if not config.providers:
        return create_success_result(
            "No providers found",
            "Add providers to your configuration file to get started.",
        )

    if provider:
        return _list_provider_models(config, provider, verbose, comprehensive=all_)

    lines = []
    # --all 总是以树形展示，并合并内置提供商
    if all_:
        merged = _merge_with_builtins(config)
        for name in sorted(merged):
            data = merged[name]
            lines.append(name)
            lines.extend(f"  └─ {model}" for model in sorted(data.models))
            if verbose:
                lines.append(f"     Base URL: {data.base_url}")
                lines.append(f"     Source: {SOURCE_LABELS[data.source]}")
        return create_success_result("Available providers and models:", _join(lines))

    if tree:
        for item in config.providers:
            lines.append(item.provider)
            lines.extend(f"  └─ {model}" for model in item.model_names())
            if verbose:
                lines.append(f"     Base URL: {item.env.base_url}")
        return create_success_result("Available providers and models:", _join(lines))

    for item in config.providers:
        if verbose:
            lines.append(f"  {item.provider} - {len(item.model_names())} models ({item.env.base_url})")
        else:
            lines.append(f"  {item.provider}")
    return create_success_result("Available providers:", _join(lines))


def _with_file_path(result: CommandResult, verbose: bool, file_path: Path) -> CommandResult:
    if verbose and result.success and result.details:
        result.details += f"\n\nConfiguration file: {file_path}"
    return result


@command_boundary("list command execution")
def list_command(args: Sequence[str] = (), verbose: bool = False, all_: bool = False, tree: bool = False,
                 short_form: bool = False, builtin: bool = False,
                 current_dir: Optional[Union[str, Path]] = None,
                 environ: Optional[Mapping[str, str]] = None) -> CommandResult:
    try:
        options = parse_list_args(args, verbose, all_, tree, short_form, builtin)
    except ListArgumentError as e:
        return CommandResult(success=False, message=str(e), exit_code=ExitCode.GENERAL_ERROR)

    if options.builtin:
        return list_builtin_providers(options.provider, options.verbose)

    if options.subcommand is None:
        return CommandResult(
            success=False,
            message=f"A subcommand is required. Available subcommands: {', '.join(SUBCOMMANDS)}",
            exit_code=ExitCode.GENERAL_ERROR,
        )

    loaded = load_config(current_dir, environ=environ)
    if options.subcommand == "config":
        result = list_configurations(loaded.config, options.verbose)
    else:
        result = list_providers(
            loaded.config,
            provider=options.provider,
            verbose=options.verbose,
            all_=options.all,
            tree=options.tree,
        )
    return _with_file_path(result, options.verbose, loaded.file_path)
