import sys
from typing import Optional

import click

from . import __version__
from .commands import (
    chk_command,
    list_command,
    router_command,
    run_command,
    set_default_command,
    status_command,
    use_command,
)
from .errors import ExitCode
from .log import setup_logging
from .types import CommandResult

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])


# Windows GBK终端兼容性：安全输出Unicode字符
def safe_echo(message, **kwargs):
    """在Windows GBK终端下安全输出Unicode字符"""
    try:
        click.echo(message, **kwargs)
    except UnicodeEncodeError:
        # 替换Unicode符号为ASCII
        safe_message = message.replace('✓', '[OK]').replace('✗', '[X]').replace('⚠', '[WARN]').replace('•', '*').replace('└─', '`-')
        click.echo(safe_message, **kwargs)


def emit_result(result: CommandResult):
    """输出命令结果，非零退出码时退出进程"""
    if result.success:
        safe_echo(result.message)
        if result.details:
            safe_echo(result.details)
    else:
        safe_echo(f"Error: {result.message}", err=True)
        if result.details:
            safe_echo(result.details, err=True)

    if result.exit_code:
        sys.exit(int(result.exit_code))


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__, prog_name="qcr")
def cli():
    """Qwen Code Router - Qwen Code 的 API 配置切换工具

    从 config.yaml / config.json 读取提供商和配置，
    解析出 OPENAI_API_KEY、OPENAI_BASE_URL、OPENAI_MODEL 三个环境变量。

    核心命令:
      - use: 激活配置（不指定名称时使用默认配置）
      - run: 以激活的配置启动 Qwen Code
      - router: 按 provider/model 快速激活
      - list / chk: 查看和校验配置
    """
    pass


@cli.command()
@click.argument('config_name', required=False)
@click.option('-v', '--verbose', is_flag=True, help='显示详细信息')
@click.option('--export', 'export', is_flag=True, help='输出可供 eval 的 export 语句')
def use(config_name: Optional[str], verbose: bool, export: bool):
    """激活配置

    使用方式: qcr use [config_name]

    在 shell 中持久化: eval "$(qcr use <config_name> --export)"
    """
    emit_result(use_command(config_name, verbose=verbose, export=export))


@cli.command(context_settings=dict(ignore_unknown_options=True, allow_interspersed_args=False))
@click.option('-c', '--config', 'config_name', help='使用指定的配置启动')
@click.option('-v', '--verbose', is_flag=True, help='显示详细信息')
@click.argument('args', nargs=-1, type=click.UNPROCESSED)
def run(config_name: Optional[str], verbose: bool, args: tuple):
    """启动 Qwen Code，其余参数原样传递

    配置来源: -c 指定的配置 > 当前环境中完整的变量 > 默认配置

    示例: qcr run -c openai-gpt4 --prompt "hello"
    """
    emit_result(run_command(args, config_name=config_name, verbose=verbose))


@cli.command('set-default')
@click.argument('config_name')
@click.option('-v', '--verbose', is_flag=True, help='显示详细信息')
def set_default(config_name: str, verbose: bool):
    """设置默认配置并写回配置文件"""
    emit_result(set_default_command(config_name, verbose=verbose))


@cli.command('list')
@click.argument('args', nargs=-1)
@click.option('-p', 'short_form', is_flag=True, help='列出配置文件中的提供商（等同于 provider）')
@click.option('-f', 'builtin', is_flag=True, help='列出内置提供商')
@click.option('--all', 'all_', is_flag=True, help='合并内置提供商，以树形展示')
@click.option('--tree', is_flag=True, help='以树形展示提供商和模型')
@click.option('-v', '--verbose', is_flag=True, help='显示详细信息')
@click.pass_context
def list_cmd(ctx, args: tuple, short_form: bool, builtin: bool, all_: bool, tree: bool, verbose: bool):
    """列出配置或提供商

    \b
    使用方式:
      qcr list config              # 所有配置
      qcr list provider [name]     # 配置文件中的提供商 / 某个提供商的模型
      qcr list -p --all            # 合并内置提供商的树形列表
      qcr list -f [provider]       # 内置提供商
    """
    if not args and not short_form and not builtin:
        safe_echo(ctx.get_help())
        return

    emit_result(list_command(
        args,
        verbose=verbose,
        all_=all_,
        tree=tree,
        short_form=short_form,
        builtin=builtin,
    ))


@cli.command()
@click.argument('config_name', required=False)
@click.option('--test-api', is_flag=True, help='测试 API 连通性和模型可用性')
@click.option('-v', '--verbose', is_flag=True, help='显示详细信息')
def chk(config_name: Optional[str], test_api: bool, verbose: bool):
    """校验配置（不指定名称时校验全部），警告也视为失败"""
    emit_result(chk_command(config_name, test_api=test_api, verbose=verbose))


@cli.command()
@click.argument('provider')
@click.argument('model')
@click.option('-v', '--verbose', is_flag=True, help='显示详细信息')
@click.option('--export', 'export', is_flag=True, help='输出可供 eval 的 export 语句')
def router(provider: str, model: str, verbose: bool, export: bool):
    """按 provider/model 快速激活（也可写作 /router）

    示例: qcr router openai gpt-4
    """
    emit_result(router_command(provider, model, verbose=verbose, export=export))


@cli.command()
@click.option('-v', '--verbose', is_flag=True, help='显示启动检查和系统信息')
def status(verbose: bool):
    """显示当前激活的环境变量"""
    emit_result(status_command(verbose=verbose))


def main():
    """主入口点"""
    setup_logging()

    # /router 是 router 的别名
    if len(sys.argv) > 1 and sys.argv[1] == "/router":
        sys.argv[1] = "router"

    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\nOperation cancelled by user", err=True)
        sys.exit(ExitCode.INTERRUPTED)
    except Exception as e:
        click.echo(f"Fatal error: {e}", err=True)
        sys.exit(ExitCode.GENERAL_ERROR)


if __name__ == '__main__':
    main()
