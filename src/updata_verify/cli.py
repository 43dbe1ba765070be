from pathlib import Path
import click
from .logic import canonical_json, verify_container

@click.group()
def main():
    pass

@main.command("container")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def container_cmd(path: Path):
    result = verify_container(path)
    click.echo(canonical_json(result))

if __name__ == "__main__":
    main()
