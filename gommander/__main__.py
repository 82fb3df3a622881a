"""
python -m gommander [status [--raw] | doctor | selftest | help [command]]
"""
import sys

from rich.console import Console
from rich.pretty import pprint

from gommander import (
    __version__,
    Command,
    configure,
    get_backend_status,
    get_troubleshooting_guidance,
    print_system_diagnostics,
    print_troubleshooting_guidance,
    test_backend,
)


def build(console):
    outcome = {"status": 0}

    def status(arguments, options):
        if options.get("raw"):
            pprint(get_backend_status(), console=console, expand_all=True)
        else:
            print_system_diagnostics(console=console)

    def doctor(arguments, options):
        if options.get("raw"):
            pprint(get_troubleshooting_guidance(), console=console, expand_all=True)
        else:
            print_troubleshooting_guidance(console=console)

    def selftest(arguments, options):
        report = test_backend()
        for test in report["tests"]:
            mark = "[green]ok[/]" if test["success"] else "[red]failed[/]"
            console.print(f"  {mark} {test['name']}", highlight=False)
        console.print(report["message"], style="bold green" if report["success"] else "bold red")
        outcome["status"] = 0 if report["success"] else 1

    cli = Command("gommander").description("Inspect the gommander engines").version(__version__)
    cli.command("status", "Show which engine is active").option("--raw", "print the raw status mapping").action(status)
    cli.command("doctor", "Show troubleshooting guidance").option("--raw", "print the raw guidance mapping").action(doctor)
    cli.command("selftest", "Exercise every native engine call").action(selftest)
    return cli, outcome


def main(argv=None):
    configure()
    console = Console()
    cli, outcome = build(console)
    if cli.parse(sys.argv if argv is None else argv) is None:
        cli.output_help(console=console)
        return 2
    return outcome["status"]


if __name__ == '__main__':
    sys.exit(main())
