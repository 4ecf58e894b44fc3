"""项目 .env 加载"""

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from padelscorer.utils.logger import PROJECT_ROOT, get_logger

logger = get_logger(__name__)


def load_project_env(env_path: Optional[Path] = None) -> bool:
    """加载 .env（默认项目根目录），文件中的值覆盖已有环境变量；返回是否找到文件"""
    env_path = Path(env_path) if env_path else PROJECT_ROOT / ".env"

    if not env_path.exists():
        logger.debug(f"未找到 {env_path}，只使用系统环境变量")
        return False

    load_dotenv(env_path, override=True)
    logger.info(f"已加载环境变量文件: {env_path}")
    return True
