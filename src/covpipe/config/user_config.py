"""Project config file (covpipe.yaml) generation.

'covpipe init' writes every section with its default value so the file
documents what can be changed. Values left as-is behave exactly like an
absent file.
"""

from pathlib import Path

import yaml

from covpipe.config.models import CovPipeConfig

CONFIG_HEADER = """\
# covpipe configuration
#
# Precedence: CLI flags > COVPIPE__SECTION__KEY env vars > this file > defaults.
#
# upload.sha256 must be set before uploading; run 'covpipe vendor-uploader'
# to download the uploader script and print its checksum.

"""


def render_user_config(config: CovPipeConfig | None = None) -> str:
    """Render a config as commented YAML."""
    cfg = config or CovPipeConfig()
    data = cfg.model_dump(mode="json", exclude={"logging"})
    return CONFIG_HEADER + yaml.safe_dump(data, sort_keys=False, default_flow_style=False)


def write_user_config(path: Path, config: CovPipeConfig | None = None) -> None:
    """Write covpipe.yaml, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_user_config(config))
