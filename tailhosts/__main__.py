from tailhosts.sync_hosts import run_cli

run_cli()
