from pathlib import Path


# 项目根目录（包含 api、stores、utils 等包的目录）
BASE_DIR = Path(__file__).resolve().parents[1]

# 常用子目录路径
CONFIG_DIR = BASE_DIR / 'config'
LOG_DIR = BASE_DIR / 'log'
DATA_DIR = BASE_DIR / 'data'


def resolve_path(path: str) -> Path:
    """相对路径按项目根目录解析，绝对路径原样返回"""
    candidate = Path(path).expanduser()
    if candidate.is_absolute():
        return candidate
    return BASE_DIR / candidate


if __name__ == "__main__":
    print("BASE_DIR:", BASE_DIR)
    print("CONFIG_DIR:", CONFIG_DIR)
    print("LOG_DIR:", LOG_DIR)
    print("DATA_DIR:", DATA_DIR)
