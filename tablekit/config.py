import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class Settings(BaseModel):
    database_url: str = Field(
        default=os.getenv("DATABASE_URL", "sqlite+pysqlite:///./tablekit.db")
    )
    db_pool_size: int = Field(default=int(os.getenv("DB_POOL_SIZE", "5")))
    db_max_overflow: int = Field(default=int(os.getenv("DB_MAX_OVERFLOW", "10")))
    db_pool_timeout: int = Field(default=int(os.getenv("DB_POOL_TIMEOUT", "30")))
    db_pool_recycle: int = Field(default=int(os.getenv("DB_POOL_RECYCLE", "1800")))

    log_level: str = Field(default=os.getenv("LOG_LEVEL", "INFO"))

    # Table defaults, overridable per table type
    table_empty_value: str = Field(default=os.getenv("TABLE_EMPTY_VALUE", "No data found."))
    table_items_per_page: int = Field(default=int(os.getenv("TABLE_ITEMS_PER_PAGE", "20")), gt=0)
    table_page_param: str = Field(default=os.getenv("TABLE_PAGE_PARAM", "page"))
    table_sort_column_param: str = Field(default=os.getenv("TABLE_SORT_COLUMN_PARAM", "column"))
    table_sort_direction_param: str = Field(
        default=os.getenv("TABLE_SORT_DIRECTION_PARAM", "direction")
    )
    table_sort_default_direction: str = Field(
        default=os.getenv("TABLE_SORT_DEFAULT_DIRECTION", "desc").lower()
    )

    class Config:
        frozen = True


settings = Settings()
