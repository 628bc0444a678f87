"""
views/pages.py
--------------
HTML pages for the browser-facing endpoints (registration result,
deep-link page, QR code generator). Every user-supplied value is escaped.
"""

from html import escape

_CARD_STYLE = """
    body {
      font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
      display: flex;
      justify-content: center;
      align-items: center;
      min-height: 100vh;
      margin: 0;
      background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
    }
    .container {
      background: white;
      padding: 40px;
      border-radius: 20px;
      box-shadow: 0 20px 60px rgba(0,0,0,0.3);
      text-align: center;
      max-width: 400px;
    }
    .icon { font-size: 60px; margin-bottom: 20px; }
    h1 { margin: 0 0 20px 0; }
    h1.ok { color: #27ae60; }
    h1.ng { color: #e74c3c; }
    p { color: #666; line-height: 1.6; }
    .info {
      background: #f8f9fa;
      padding: 20px;
      border-radius: 10px;
      margin: 20px 0;
      text-align: left;
    }
    .info-row { display: flex; margin: 10px 0; font-size: 14px; }
    .info-label { font-weight: bold; color: #666; min-width: 50px; }
    .info-value { color: #333; word-break: break-all; }
    .instructions {
      background: #e3f2fd;
      border-left: 4px solid #2196f3;
      padding: 15px;
      margin: 20px 0;
      text-align: left;
      border-radius: 5px;
    }
    .code-display {
      background: #f5f5f5;
      padding: 15px;
      border-radius: 5px;
      font-family: monospace;
      font-size: 18px;
      font-weight: bold;
      color: #06c755;
      margin: 20px 0;
      border: 2px dashed #06c755;
      word-break: break-all;
    }
    .line-button {
      display: inline-block;
      background: #06c755;
      color: white;
      padding: 12px 30px;
      border-radius: 25px;
      text-decoration: none;
      margin-top: 20px;
      font-weight: bold;
    }
"""


def _layout(title: str, body: str, style: str = _CARD_STYLE, head_extra: str = "") -> str:
    return f"""<!DOCTYPE html>
<html lang="ja">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{escape(title)}</title>
  {head_extra}
  <style>{style}</style>
</head>
<body>
{body}
</body>
</html>
"""


def _info_rows(external_id: str, display_name: str) -> str:
    return f"""
    <div class="info">
      <div class="info-row">
        <span class="info-label">ID:</span>
        <span class="info-value">{escape(external_id)}</span>
      </div>
      <div class="info-row">
        <span class="info-label">氏名:</span>
        <span class="info-value">{escape(display_name)}</span>
      </div>
    </div>"""


def render_error_page(title: str, *lines: str, icon: str = "❌") -> str:
    """Error card; each line is escaped and joined with <br>."""
    message = "<br>".join(escape(line) for line in lines)
    return _layout(title, f"""
  <div class="container">
    <div class="icon">{icon}</div>
    <h1 class="ng">{escape(title)}</h1>
    <p>{message}</p>
  </div>""")


def render_missing_params_page() -> str:
    return render_error_page(
        "エラー",
        "必要なパラメータが不足しています。",
        "正しいQRコードをご使用ください。",
    )


def render_server_error_page() -> str:
    return render_error_page(
        "サーバーエラー",
        "サーバーでエラーが発生しました。",
        "しばらく経ってから再度お試しください。",
        icon="💥",
    )


def render_success_page(external_id: str, display_name: str) -> str:
    return _layout("登録完了", f"""
  <div class="container">
    <div class="icon">✅</div>
    <h1 class="ok">登録完了</h1>
    {_info_rows(external_id, display_name)}
    <p>
      IDの登録が完了しました。<br>
      LINEにメッセージが届いています。<br>
      このページは閉じていただいて構いません。
    </p>
    <a href="https://line.me/R/" class="line-button">LINEを開く</a>
  </div>""")


def render_link_page(external_id: str, display_name: str, command: str, deep_link: str) -> str:
    """Page shown after scanning a QR code that carries no LINE user id."""
    return _layout("LINE登録", f"""
  <div class="container">
    <h1>📱 LINE登録</h1>
    {_info_rows(external_id, display_name)}
    <div class="instructions">
      <strong>📝 登録手順:</strong>
      <ol>
        <li>まず、LINE公式アカウントを友達追加</li>
        <li>下のボタンをタップしてLINEを開く</li>
        <li>以下のコードがそのまま送信されていなければ、コピーして送信:</li>
      </ol>
    </div>
    <div class="code-display">{escape(command)}</div>
    <a href="{escape(deep_link, quote=True)}" class="line-button">LINEを開く</a>
  </div>""")


_QR_STYLE = """
    body {
      font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
      max-width: 800px;
      margin: 50px auto;
      padding: 20px;
      background: #f5f5f5;
    }
    .container {
      background: white;
      padding: 40px;
      border-radius: 10px;
      box-shadow: 0 2px 10px rgba(0,0,0,0.1);
    }
    h1 { color: #333; border-bottom: 3px solid #06c755; padding-bottom: 10px; }
    .form-group { margin: 20px 0; }
    label { display: block; font-weight: bold; margin-bottom: 5px; color: #555; }
    input {
      width: 100%;
      padding: 12px;
      border: 2px solid #ddd;
      border-radius: 5px;
      font-size: 16px;
      box-sizing: border-box;
    }
    button {
      background: #06c755;
      color: white;
      padding: 15px 30px;
      border: none;
      border-radius: 5px;
      font-size: 16px;
      font-weight: bold;
      cursor: pointer;
      width: 100%;
      margin-top: 10px;
    }
    .download-btn { background: #007bff; }
    #qrcode { text-align: center; margin: 30px 0; display: none; }
    #qrcode.show { display: block; }
    #canvas { margin: 20px auto; display: inline-block; }
    .url-display {
      margin: 20px 0;
      padding: 15px;
      background: #f0f0f0;
      border-radius: 5px;
      word-break: break-all;
      font-family: monospace;
      font-size: 12px;
    }
    .note {
      background: #fff3cd;
      border-left: 4px solid #ffc107;
      padding: 15px;
      margin: 20px 0;
      border-radius: 5px;
    }
"""

_QR_SCRIPT = """
  <script>
    const form = document.getElementById('qrForm');
    const qrcodeDiv = document.getElementById('qrcode');
    const target = document.getElementById('canvas');
    const urlDisplay = document.getElementById('urlDisplay');
    const registerUrl = form.dataset.registerUrl;
    const linkUrl = form.dataset.linkUrl;

    form.addEventListener('submit', (e) => {
      e.preventDefault();
      const lineId = document.getElementById('lineId').value.trim();
      const userId = document.getElementById('userId').value.trim();
      const userName = document.getElementById('userName').value.trim();
      if (!userId || !userName) {
        alert('登録IDと氏名を入力してください');
        return;
      }
      const params = new URLSearchParams();
      if (lineId) params.set('lineId', lineId);
      params.set('userId', userId);
      params.set('userName', userName);
      const url = (lineId ? registerUrl : linkUrl) + '?' + params.toString();

      target.innerHTML = '';
      new QRCode(target, {
        text: url,
        width: 300,
        height: 300,
        correctLevel: QRCode.CorrectLevel.H
      });
      urlDisplay.textContent = url;
      qrcodeDiv.classList.add('show');
    });

    function downloadQR() {
      const img = target.querySelector('img') || target.querySelector('canvas');
      const link = document.createElement('a');
      link.download = 'QR_' + document.getElementById('userId').value.trim() + '.png';
      link.href = img.tagName === 'IMG' ? img.src : img.toDataURL();
      link.click();
    }
  </script>
"""


def render_qr_generator_page(register_url: str, link_url: str) -> str:
    """
    QR code generator form.

    With a LINE user id the code encodes `register_url` (links on scan);
    without one it encodes `link_url` (deep-link page, user sends the code).
    """
    body = f"""
  <div class="container">
    <h1>📱 LINE ID紐付け用QRコード生成</h1>
    <div class="note">
      <p>LINE User IDを入力すると、QRコードを読み取るだけで登録が完了します。</p>
      <p>空欄の場合は、読み取った人がLINEで登録コードを送信して登録します。</p>
    </div>
    <form id="qrForm"
          data-register-url="{escape(register_url, quote=True)}"
          data-link-url="{escape(link_url, quote=True)}">
      <div class="form-group">
        <label for="lineId">LINE User ID（任意）</label>
        <input type="text" id="lineId" placeholder="例: U1234567890abcdef1234567890abcdef">
      </div>
      <div class="form-group">
        <label for="userId">登録ID *</label>
        <input type="text" id="userId" placeholder="例: EMP001, STU12345" required>
      </div>
      <div class="form-group">
        <label for="userName">氏名 *</label>
        <input type="text" id="userName" placeholder="例: 山田太郎" required>
      </div>
      <button type="submit">QRコード生成</button>
    </form>
    <div id="qrcode">
      <h2>生成されたQRコード</h2>
      <div id="canvas"></div>
      <div class="url-display" id="urlDisplay"></div>
      <button class="download-btn" onclick="downloadQR()">QRコードをダウンロード</button>
    </div>
  </div>
{_QR_SCRIPT}"""
    head = '<script src="https://cdnjs.cloudflare.com/ajax/libs/qrcodejs/1.0.0/qrcode.min.js"></script>'
    return _layout("QRコード生成ツール", body, style=_QR_STYLE, head_extra=head)
