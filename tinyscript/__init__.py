from tinyscript.tinyscript_runtime import ScriptRunner, ExecutionResult

__all__ = ["ScriptRunner", "ExecutionResult"]
