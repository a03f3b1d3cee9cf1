"""`python -m AetherRealtime.cli` 的命令行启动入口。"""

from AetherRealtime.cli.main import main

if __name__ == "__main__":
    main()
