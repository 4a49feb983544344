"""Run the flux-reconcile command line tool."""

from flux_reconcile.tool.flux_reconcile import main

if __name__ == "__main__":
    main()
