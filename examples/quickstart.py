"""sshgate quickstart: run one judged tool call from Python."""

import asyncio

from sshgate.config import JudgeConfig, ServerSettings
from sshgate.tools.dispatcher import Dispatcher


async def main() -> None:
    dispatcher = Dispatcher.from_settings(JudgeConfig.from_env(), ServerSettings.from_env())
    result = await dispatcher.call("run_local_command", {"command": "uname", "args": ["-a"]})

    print(f"Summary: {result.summary}")
    print(result.stdout or result.error)


asyncio.run(main())
