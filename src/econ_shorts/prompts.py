"""Prompt builders for the Gemini requests."""

from .models import ScriptType

DEFAULT_TOPIC = "금융 교육, 재테크"

PRIMARY_IMAGE_STYLE = (
    "High-quality Chibi character design, cute vector art, 2.5 heads tall ratio, "
    "big expressive eyes, thick black outlines, flat cartoon colors"
)
FALLBACK_IMAGE_STYLE = (
    "Simplified 2D cartoon illustration, clean lines, basic shapes, "
    "bright colors, minimalist character art"
)


def idea_prompt(keyword: str | None = None) -> str:
    topic = (keyword or "").strip() or DEFAULT_TOPIC
    return (
        "당신은 한국 YouTube 금융/재테크 채널의 바이럴 제목 전문가입니다.\n"
        f'아래 규칙을 따라 "{topic}" 주제로 클릭을 유도하는 '
        "한국어 제목 아이디어 5개를 만드세요.\n\n"
        "【핵심 공식】: [충격 요소] + [구체적 숫자] + [타겟층] + [긴급성/비밀성]\n"
        "【한국어 특화 규칙】:\n"
        "- 존댓말 사용, 숫자는 '만원/억' 단위로(예: 847만원), 25자 내외 간결함 유지.\n"
        "- 금액 행동 결과, 상황은 왜 충격적 사실일까, 나이/상황 해결책, "
        "숫자가지 주제 비밀, 주제의 진실, 내가 금액 모은 방법 등 "
        "10가지 패턴 적극 활용.\n"
        "- 감정 키워드(함정, 손해, 비밀, 즉시, 실제) 포함.\n\n"
        "【결과물 요구사항】:\n"
        "각 아이디어의 'premise' 필드에는 해당 제목에 사용된 [패턴 번호]와 "
        "[추천 이유]를 간략히 포함할 것.\n"
        "마지막 아이디어는 반드시 가장 추천하는 '베스트 아이디어'로 선정하여 "
        "이유를 상세히 적을 것.\n\n"
        "출력 형식: 반드시 JSON 배열 [{title, premise}]만 출력."
    )


def script_prompt(title: str, protagonist_name: str, script_type: ScriptType) -> str:
    if script_type is ScriptType.SHORTS:
        length = "숏폼 (1000자~1200자 엄수)"
        emphasis = (
            "[제한]: 공백 포함 1000자~1200자 사이를 절대 유지할 것 (1200자 초과 금지)."
        )
    else:
        length = "롱폼 (5000자 내외의 상세한 대본)"
        emphasis = (
            "[강조]: 5000자 정도의 풍성한 분량을 위해 아주 구체적인 사례와 "
            "수학적 계산 과정을 모두 서술할 것."
        )
    return (
        f"[영상 주제]: '{title}'\n"
        f"[주인공 이름]: {protagonist_name}\n"
        f"[영상 유형]: {length}\n\n"
        "[필수 구조]:\n"
        "1. 오프닝 훅: 시청자가 '이거 내 얘긴데?'라고 공감할 만한 "
        "구체적인 상황으로 시작.\n"
        f'2. 도입부 필수 문구: "내 이름은 {protagonist_name}이야. '
        "난 [관련 금융 주제]에 대해서 진짜 미친 듯이 고민하거든. "
        "만약 네가 [시청자의 고민 묘사] 때문에 힘들다면, 구독 버튼 누르고 "
        '이 영상이 도움 되면 좋아요도 꼭 눌러줘." (이 문구는 반드시 포함)\n'
        "3. 기존 상식 파괴: 사람들이 흔히 믿는 잘못된 금융 상식을 날카로운 독설로 반박.\n"
        "4. 통계 및 수치: 신뢰할 수 있는 출처의 놀라운 통계와 실제 금액 계산 예시 포함.\n"
        "5. 심리 분석: 왜 사람들이 그런 경제적 결정을 내리는지 심리학적으로 설명.\n"
        '6. 예상 반박 대응: "지금 이런 생각 들지?"라며 시청자의 의구심에 미리 답변.\n'
        "7. 비유를 통한 핵심 설명: 어려운 개념을 일상적인 사물에 빗대어 설명.\n"
        '8. 통찰력 강화: 후반부로 갈수록 "사람들이 진짜 모르는 게 뭐냐면..." '
        "같은 표현을 사용해 놀라운 인사이트 제공.\n"
        "9. 스토리텔링: 핵심 포인트를 이야기 형식으로 풀기.\n"
        "10. 결론 및 행동 촉구: 강력한 동기부여와 함께 구독/좋아요 유도.\n\n"
        "[스타일 가이드]:\n"
        "- 말투: 권위 있지만 친근하게(친구랑 말하듯이). "
        "'사실 말이야...', '자 봐봐', '음...' 같은 추임새 활용.\n"
        "- 태도: 사람들의 실수에 답답해하면서도 진심으로 걱정해주는 독설가 치비 캐릭터.\n"
        f"- {emphasis}\n"
        "- 마크다운 기호 사용 금지. 대화체 위주.\n\n"
        "JSON 구조: {title, sections: [{id, title, content}]}"
    )


def storyboard_prompt(script: str, protagonist_desc: str, script_type: ScriptType) -> str:
    return (
        f"아래 대본을 {script_type.scene_range} 장면으로 나누어 "
        "비주얼 스토리보드를 구성하라.\n\n"
        "[CRITICAL: 대본 보존 규칙]\n"
        "- 제공된 대본의 모든 문장을 순서대로 각 장면의 'description' 필드에 "
        "완벽하게 분배하라.\n"
        "- TTS 변환을 위해 원본 대본과 100% 일치해야 한다.\n\n"
        "[이미지 생성 지침]\n"
        "- 스타일: High-quality Chibi character design, cute vector art, "
        "big expressive eyes, thick black outlines, bold colors.\n"
        f"- 캐릭터: {protagonist_desc}. 항상 머리부터 발끝까지 보이는 "
        "'전신 샷(Full Body)'으로 구성.\n"
        "- 표정: 상황에 맞춰 코믹하게 과장.\n\n"
        "JSON 형식: [{id, description, imagePrompt, videoPrompt}]\n"
        f"대본 내용: {script}"
    )


def image_prompt(style: str, scene: str, protagonist_desc: str) -> str:
    return (
        f"[STYLE: {style}]\n"
        "[FRAME: FULL BODY SHOT, head to toe visible, no cropping, centered composition]\n"
        f"[CHARACTER: {protagonist_desc}]\n"
        f"[SCENE: {scene}]\n"
        "[BACKGROUND: Simple minimal light solid color background]\n"
        "[TECHNICAL: High resolution, sharp lines, no text, no captions]"
    )
