"""Django admin configuration for quiz authoring.

The admin is the authoring surface: quizzes are edited with their groups
and profile ranges inline, and questions with their options and
conditions inline.  The "Check quiz definition" action reports authoring
issues such as conditions that point at later questions.
"""

from django.contrib import admin, messages

from .forms import ConditionForm
from .models import (
    Condition,
    Option,
    ProfileRange,
    Question,
    QuestionAnswer,
    QuestionGroup,
    Quiz,
    QuizResponse,
)
from .services.quiz_loader import load_quiz_definition, quiz_queryset
from .services.validation import validate_quiz


class QuestionGroupInline(admin.TabularInline):
    model = QuestionGroup
    extra = 0


class ProfileRangeInline(admin.TabularInline):
    model = ProfileRange
    extra = 0


class QuestionInline(admin.TabularInline):
    model = Question
    extra = 0
    fields = ('order_index', 'text', 'question_type', 'required', 'group')
    show_change_link = True


class OptionInline(admin.TabularInline):
    model = Option
    extra = 0


class ConditionInline(admin.TabularInline):
    model = Condition
    form = ConditionForm
    fk_name = 'question'
    extra = 0


@admin.action(description='Check quiz definition')
def check_quiz_definition(modeladmin, request, queryset):
    """Report authoring issues for the selected quizzes."""

    for quiz in quiz_queryset().filter(pk__in=queryset.values('pk')):
        issues = validate_quiz(load_quiz_definition(quiz))
        if not issues:
            modeladmin.message_user(request, f'"{quiz.title}": no issues found.', messages.SUCCESS)
            continue
        for issue in issues:
            modeladmin.message_user(request, f'"{quiz.title}": {issue.message}', messages.WARNING)


@admin.register(Quiz)
class QuizAdmin(admin.ModelAdmin):
    list_display = ('title', 'scoring_strategy', 'owner', 'updated_at')
    list_filter = ('scoring_strategy',)
    search_fields = ('title',)
    inlines = (QuestionGroupInline, QuestionInline, ProfileRangeInline)
    actions = (check_quiz_definition,)

    def save_model(self, request, obj, form, change):
        if obj.owner_id is None:
            obj.owner = request.user
        super().save_model(request, obj, form, change)


@admin.register(Question)
class QuestionAdmin(admin.ModelAdmin):
    list_display = ('text', 'quiz', 'question_type', 'required', 'order_index')
    list_filter = ('question_type', 'quiz')
    inlines = (OptionInline, ConditionInline)


class QuestionAnswerInline(admin.TabularInline):
    model = QuestionAnswer
    extra = 0
    readonly_fields = ('question_key', 'question', 'answer', 'order_index')
    can_delete = False


@admin.register(QuizResponse)
class QuizResponseAdmin(admin.ModelAdmin):
    list_display = ('quiz', 'user_name', 'user_email', 'score', 'profile', 'is_premium', 'completed_at')
    list_filter = ('is_premium', 'quiz')
    # Results are immutable apart from the premium flag.
    readonly_fields = (
        'quiz', 'user', 'user_name', 'user_email', 'user_phone', 'score',
        'profile', 'group_scores', 'details', 'completed_at',
    )
    inlines = (QuestionAnswerInline,)
