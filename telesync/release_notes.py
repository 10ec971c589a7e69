"""发布说明和捐赠链接。"""

from telesync import __version__

# 版本号末尾的 "!" 表示此次升级需要通知用户
PRE_RELEASE_MARKER = "!"
RELEASE_VERSION = f"{__version__}{PRE_RELEASE_MARKER}"

NEW_FEATURES = """
- 超过 20 MB 的文件通过本地 Bot API 服务器下载
- 下载时显示分阶段的进度条
"""

BUG_FIXES = """
- 同一秒内到达的同名消息不再覆盖彼此
- 只发送文件的消息也会检查允许列表
"""

POSSIBLE_ROADMAP = """
- 按会话分别设置保存位置
"""

