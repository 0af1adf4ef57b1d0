# Copyright (c) 2026 Panayotis Katsaloulis
# SPDX-License-Identifier: AGPL-3.0-or-later
"""embyfind - local API for the desktop shell"""
import logging
import os

from fastapi import FastAPI

from embyfind.config import log_level
from embyfind.routes import discovery

# Setup logging
logging.basicConfig(
    level=log_level(),
    format='%(asctime)s %(levelname)s: %(message)s',
    handlers=[logging.StreamHandler()]
)
log = logging.getLogger(__name__)

app = FastAPI(title="embyfind")
app.include_router(discovery.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=os.environ.get("EMBYFIND_HOST", "127.0.0.1"),
                port=int(os.environ.get("EMBYFIND_PORT", "8097")))
