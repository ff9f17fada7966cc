"""命令行入口：python -m convo_driver 或 convo-driver。

不接受任何参数，一次调用跑完配置中的全部 user prompt。
退出码：0 表示全部成功；BusinessError 按错误类别返回各自的 exit_code；
Ctrl-C 返回 130。
"""

import logging
import sys
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from convo_driver.config.conversation import load_conversation_config
from convo_driver.config.settings import load_settings
from convo_driver.conversation import ConversationRunner
from convo_driver.domain.exceptions import BusinessError
from convo_driver.infrastructure.logging.logger import setup_logger
from convo_driver.providers import ProviderClient, create_provider

logger = logging.getLogger("convo_driver.main")


def main(provider: Optional[ProviderClient] = None) -> int:
    # .env 不存在时 load_dotenv 返回 False，不算错误
    load_dotenv(find_dotenv(usecwd=True), override=False)
    try:
        cfg = load_settings()
        setup_logger(cfg=cfg)
        conversation = load_conversation_config(cfg.config_file)
        runner = ConversationRunner(provider or create_provider(cfg))
        history = runner.run(conversation.system_prompt, conversation.user_prompt)
    except BusinessError as e:
        logger.error("aborted: %s", e.describe(), extra={"extra": {"kind": e.kind, "code": e.code}})
        print(f"error: {e.describe()}", file=sys.stderr)
        if e.cause is not None:
            print(f"caused by: {e.cause!r}", file=sys.stderr)
        return e.exit_code
    except KeyboardInterrupt:
        print("interrupted", file=sys.stderr)
        return 130
    logger.info("conversation finished: %d messages", len(history))
    return 0


if __name__ == "__main__":
    sys.exit(main())
