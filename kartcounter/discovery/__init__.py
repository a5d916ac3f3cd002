from .master import MasterServerClient, discover_servers, parse_server_list, parse_version
