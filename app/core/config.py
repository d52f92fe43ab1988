# app/core/config.py
# 應用程式設定 (資料庫連線字串、JWT 秘鑰、業務規則開關等)
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # 資料庫設定
    DATABASE_URL: str
    # 是否在 console 印出 SQL 語句
    DB_ECHO: bool = False

    # JWT 設定
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    # 存取令牌過期時間（分鐘）
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # 提案接受政策：False = 後接受者覆蓋 (last-accept-wins)，
    # True = 只允許 pending 提案 + open 案件
    STRICT_PROPOSAL_ACCEPTANCE: bool = False
    # 接受提案成功後是否通知工作者 (寫入通知 + 即時廣播)
    NOTIFY_ON_PROPOSAL_ACCEPT: bool = False

    # 即時廣播：每個訂閱者最多暫存幾則未讀訊息，超過即丟棄
    BROADCAST_QUEUE_SIZE: int = 16

    LOG_LEVEL: str = "INFO"

# 建立設定實例
settings = Settings()
