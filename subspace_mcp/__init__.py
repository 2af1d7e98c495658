"""字幕検索MCPサーバーパッケージ"""
