from sqlcompose.utils import escape, logging, module_loader, serializers, text, type_guards

__all__ = ("escape", "logging", "module_loader", "serializers", "text", "type_guards")
