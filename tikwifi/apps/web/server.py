from __future__ import annotations

import os
from pathlib import Path

from ...config import load_config, resolve_config_path
from . import create_app


def main() -> None:
    cfg_path = resolve_config_path(Path(os.environ.get("TIKWIFI_CONFIG", "configs/tikwifi.yml")))
    cfg = load_config(cfg_path)
    app = create_app(cfg, config_path=cfg_path)
    # One request at a time: scan session state is not shared across threads
    app.run(host=cfg.web.bind_host, port=cfg.web.bind_port, threaded=False)


if __name__ == "__main__":
    main()
