import logging

from fastapi import FastAPI

from timechart.api.chart import router as chart_router
from timechart.config import API_PREFIX, LOG_LEVEL

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Epidemic Time Chart API")

app.include_router(chart_router, prefix=API_PREFIX)
