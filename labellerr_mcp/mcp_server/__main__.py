"""Entry point: python -m labellerr_mcp.mcp_server"""

from labellerr_mcp.mcp_server import main

main()
