from notion_cli.mcp_server import main

main()
