import os
from typing import Optional

from pydantic_settings import BaseSettings


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings(BaseSettings):
    # 数据源选择: true 使用远程数据库, 否则使用内存数据集
    USE_REMOTE_STORE: bool = _flag("USE_REMOTE_STORE", "false")

    # 完整连接串（优先于下面的 POSTGRES_* 配置）
    STORE_URL: Optional[str] = os.getenv("STORE_URL")

    # 数据库配置
    POSTGRES_HOST: str = os.getenv("POSTGRES_HOST", "localhost")
    POSTGRES_PORT: int = int(os.getenv("POSTGRES_PORT", "5432"))
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "storefront")

    # 公共访问账号
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "storefront_anon")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "")

    # 特权账号（仅迁移脚本使用）
    POSTGRES_ADMIN_USER: Optional[str] = os.getenv("POSTGRES_ADMIN_USER")
    POSTGRES_ADMIN_PASSWORD: Optional[str] = os.getenv("POSTGRES_ADMIN_PASSWORD")

    # 查询重试
    RETRY_MAX_ATTEMPTS: int = int(os.getenv("RETRY_MAX_ATTEMPTS", "3"))
    RETRY_DELAY_MS: int = int(os.getenv("RETRY_DELAY_MS", "1000"))

    # 数据库支持 commit_order 存储过程时走原子下单
    ATOMIC_ORDER_COMMIT: bool = _flag("ATOMIC_ORDER_COMMIT", "true")

    # 服务配置
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "5000"))
    CORS_ORIGIN: str = os.getenv("CORS_ORIGIN", "*")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    def _url(self, user: str, password: str) -> str:
        return (
            f"postgresql+psycopg://"
            f"{user}:{password}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/"
            f"{self.POSTGRES_DB}"
        )

    @property
    def database_url(self) -> str:
        if self.STORE_URL:
            return self.STORE_URL
        return self._url(self.POSTGRES_USER, self.POSTGRES_PASSWORD)

    @property
    def admin_database_url(self) -> Optional[str]:
        if self.STORE_URL:
            return self.STORE_URL
        if not self.POSTGRES_ADMIN_USER:
            return None
        return self._url(self.POSTGRES_ADMIN_USER, self.POSTGRES_ADMIN_PASSWORD or "")

settings = Settings()
