"""Run the kube-state command line tool with `python -m kube_state`."""

from kube_state.tool.kube_state import main

if __name__ == "__main__":
    main()
