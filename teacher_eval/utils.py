from rest_framework import serializers


class LabelChoiceField(serializers.ChoiceField):
    """Accepts either the stored value or its (Arabic) label; renders the label."""
    def to_internal_value(self, data):
        data_str = str(data)
        if data_str in self.choices:
            return data_str
        for key, label in self.choices.items():
            if label == data:
                return key

        for key, label in self.choices.items():
            if str(label).lower() == data_str.lower():
                return key
        self.fail('invalid_choice', input=data)

    def to_representation(self, value):
        return self.choices.get(value, super().to_representation(value))


def parse_bool_param(value) -> bool:
    return str(value).lower() in ("1", "true", "yes", "on")


def error_text(exc) -> str:
    """Flatten a django ValidationError into one message for {"error": ...} payloads."""
    messages = getattr(exc, "messages", None) or [str(exc)]
    return " ".join(str(m) for m in messages)
