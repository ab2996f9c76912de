"""Forms used by the quizzes application.

``RespondentForm`` validates the contact details collected before a quiz
starts.  ``ConditionForm`` is used by the admin to keep condition
references inside the quiz being edited.
"""

from __future__ import annotations

from django import forms

from .models import Condition


class RespondentForm(forms.Form):
    """Collects the respondent's contact details.

    Name and email are required before the first question is shown; the
    phone number is optional.
    """

    name = forms.CharField(label='Name', max_length=255, widget=forms.TextInput(attrs={
        'class': 'form-control',
        'placeholder': 'Maria Silva',
    }))
    email = forms.EmailField(label='Email', widget=forms.EmailInput(attrs={
        'class': 'form-control',
        'placeholder': 'you@example.com',
    }))
    phone = forms.CharField(label='Phone', max_length=32, required=False, widget=forms.TextInput(attrs={
        'class': 'form-control',
        'placeholder': '+55 11 91234-5678',
    }))

    def clean_name(self) -> str:
        name = self.cleaned_data['name'].strip()
        if not name:
            raise forms.ValidationError('Please tell us your name.')
        return name

    def clean_phone(self) -> str:
        return self.cleaned_data.get('phone', '').strip()


class ConditionForm(forms.ModelForm):
    """Admin form for a question's conditions."""

    class Meta:
        model = Condition
        fields = ['depends_on', 'operator', 'value', 'logical_operator', 'order_index']

    def clean(self) -> dict[str, object]:  # type: ignore[override]
        cleaned_data = super().clean()
        depends_on = cleaned_data.get('depends_on')
        question = self.instance.question if self.instance.question_id else None
        if depends_on is not None and question is not None:
            if depends_on.quiz_id != question.quiz_id:
                self.add_error('depends_on', 'Conditions can only reference questions from the same quiz.')
            elif depends_on.pk == question.pk:
                self.add_error('depends_on', 'A question cannot depend on itself.')
        return cleaned_data
