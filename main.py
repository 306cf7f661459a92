from rich.pretty import pprint

from helmsman import *

cli = program("pizza").version("0.0.1")
cli.option("-p, --pepper", "add pepper")
cli.option("-c, --cheese [type]", "add the specified type of cheese", "marble")
cli.option("--no-sauce", "remove sauce")


@cli.command("bake <size> [toppings...]").description("bake a pizza").action
def bake(size, toppings, command):
    pprint({"size": size, "toppings": toppings, **command.parent.opts()})


if __name__ == '__main__':
    cli.parse()
