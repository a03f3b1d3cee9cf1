"""命令行工具 / Command line tools."""
