"""
Delivery engine — resolve, build, filter, compile, execute.

    configuration → build_delivery_tree → filter_delivery_tree
                  → compile_task_lists → Orchestrator
"""
