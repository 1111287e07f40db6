import click
import sys
from typing import Optional

from . import __version__
from .exporter import PDFExporter, DEFAULT_OUTPUT_PREFIX
from .utils import load_config, setup_logging


@click.command(context_settings={'help_option_names': ['-h', '--help']})
@click.option('--url', '-u',
              type=str,
              required=True,
              help='The URL of the page to print')
@click.option('--auth', '-a',
              type=str,
              required=True,
              help='Authorization header value (e.g. "Basic <base64 username:api_token>")')
@click.option('--output', '-o',
              type=str,
              default=DEFAULT_OUTPUT_PREFIX,
              show_default=True,
              help="Output file path prefix (e.g. 'output' for output.pdf)")
@click.option('--headless/--headed',
              default=None,
              help='Run the browser without a window (default from config: headed)')
@click.option('--config', '-c',
              type=click.Path(exists=True),
              help='Configuration file path')
@click.option('--verbose', '-v',
              is_flag=True,
              help='Enable verbose logging')
@click.version_option(version=__version__, prog_name="page2pdf")
def main(url: str,
         auth: str,
         output: str,
         headless: Optional[bool],
         config: Optional[str],
         verbose: bool):
    """
    Load an authenticated page in Chrome and save it as a PDF.

    Writes <OUTPUT>.pdf and debug-screenshot.png to the working directory.
    """
    try:
        # Load configuration
        config_path = config or 'config.yaml'
        app_config = load_config(config_path)

        # Override config with CLI options
        if headless is not None:
            app_config['browser']['headless'] = headless
        if verbose:
            app_config['logging']['level'] = 'DEBUG'

        # Setup logging
        setup_logging(app_config['logging'])

        exporter = PDFExporter(app_config)
        result = exporter.export(url, auth, output)

        if result.success:
            click.echo(f"🎉 PDF generated successfully: {result.pdf_path}")
        else:
            click.echo(f"❌ Export did not complete ({result.status.value})")

    except KeyboardInterrupt:
        click.echo("\n⚠️  Export interrupted by user")
        sys.exit(1)


if __name__ == '__main__':
    main()
